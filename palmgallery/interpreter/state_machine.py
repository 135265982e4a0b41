from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional, Sequence, Tuple

from palmgallery.core.config import DEFAULT_PRESET, Preset
from palmgallery.core.photos import PhotoIndex
from palmgallery.core.types import (
    Action, ActionFlags, ClickEvent, DebugSnapshot, EventType, GestureCandidate,
    Gesture, Hand, LandmarkFrame, Mode, ModeEvent, PulseEvent, SceneEvent,
    SceneOutputs, SelectEvent, ThemeEvent, Vec2, clamp, clamp01,
)
from palmgallery.interpreter.cooldowns import CooldownScheduler
from palmgallery.interpreter.dwell import DwellClickTracker
from palmgallery.interpreter.motion import MotionSample, MotionTracker
from palmgallery.interpreter.pose import INDEX_TIP, HandPose, extract_pose
from palmgallery.interpreter.stabilizer import EMPTY_HOLD, GestureHoldState, GestureStabilizer

logger = logging.getLogger(__name__)


@dataclass
class InterpreterState:
    """
    Everything the interpreter remembers between frames.
    Dispatcher.step never mutates the instance it is given.
    """
    mode: Mode = Mode.CHAOS
    hold: GestureHoldState = EMPTY_HOLD
    cooldowns: Dict[Action, float] = field(default_factory=lambda: {a: 0.0 for a in Action})
    motion: MotionSample = MotionSample()
    dwell_s: float = 0.0
    pointer: Optional[Vec2] = None
    hover_progress: float = 0.0
    click_token: int = 0
    pan: Vec2 = (0.0, 0.0)
    zoom: float = 0.0
    rotation_boost: float = 0.0
    selected_photo: Optional[str] = None
    last_random_photo: Optional[str] = None
    theme: int = 0
    pulse_token: int = 0

    def clone(self) -> "InterpreterState":
        return replace(self, cooldowns=dict(self.cooldowns))


@dataclass
class _Pass:
    """Scratch for one frame: working copies of every component."""
    t_ms: int
    dt: float
    state: InterpreterState
    mode0: Mode
    photo_open0: bool
    stab: GestureStabilizer
    cooldowns: CooldownScheduler
    motion: MotionTracker
    dwell: DwellClickTracker
    events: List[SceneEvent] = field(default_factory=list)

    # per-frame derived signals
    pose: Optional[HandPose] = None
    dx: float = 0.0
    movement: Optional[Vec2] = None
    victory_seen: bool = False
    thumb_active: bool = False
    zooming: bool = False


class Dispatcher:
    """
    Deterministic gesture → scene-command state machine.
    Converts (InterpreterState, LandmarkFrame, elapsed seconds) into a new
    state plus SceneOutputs. Modes: CHAOS and FORMED, nothing else.
    """

    def __init__(self, preset: Preset = DEFAULT_PRESET, photos: PhotoIndex | None = None,
                 rng: random.Random | None = None) -> None:
        self.preset = preset
        self.photos = photos if photos is not None else PhotoIndex()
        self.rng = rng if rng is not None else random.Random()

    def step(self, state: InterpreterState, frame: LandmarkFrame,
             elapsed_s: float) -> Tuple[InterpreterState, SceneOutputs]:
        s = state.clone()
        p = _Pass(
            t_ms=frame.t_ms,
            dt=max(0.0, float(elapsed_s)),
            state=s,
            mode0=s.mode,
            photo_open0=s.selected_photo is not None,
            stab=GestureStabilizer(self.preset.gates, s.hold),
            cooldowns=CooldownScheduler(self.preset.cooldowns, s.cooldowns),
            motion=MotionTracker(self.preset.motion, s.motion),
            dwell=DwellClickTracker(self.preset.dwell, s.dwell_s),
        )
        p.cooldowns.tick(p.dt)

        hands = frame.hands
        if any(not h.complete for h in hands):
            # partial landmark sets are not trusted at all
            logger.debug("t=%d: dropping frame with incomplete landmarks", frame.t_ms)
            hands = ()

        if hands:
            self._process_hands(p, hands)
        else:
            self._process_no_hand(p)

        self._maybe_swipe(p)
        self._maybe_dismiss(p)

        s.hold = p.stab.state
        s.cooldowns = p.cooldowns.snapshot()
        s.motion = p.motion.sample
        s.dwell_s = p.dwell.elapsed_s
        s.hover_progress = p.dwell.progress
        return s, self._outputs(p, hands)

    # ---------------------- frame branches ----------------------

    def _process_no_hand(self, p: _Pass) -> None:
        s = p.state
        p.dwell.reset()
        p.stab.reset()
        # keep the pointer where the click happened until the click cooldown drains
        if p.cooldowns.ready(Action.CLICK):
            s.pointer = None
            p.motion.forget_palm()
        p.motion.forget_hand_distance()
        p.motion.forget_hand_scale()
        self._decay_rotation(p)

    def _process_hands(self, p: _Pass, hands: Sequence[Hand]) -> None:
        s = p.state
        gates = self.preset.gates
        hand = hands[0]
        lm = hand.landmarks

        pose = extract_pose(hand, self.preset.fingers)
        p.pose = pose
        palm, delta = p.motion.track_palm(lm)
        if delta is not None:
            p.dx = delta[0]
            if delta != (0.0, 0.0):
                p.movement = delta
        moving = p.motion.is_moving(delta)

        top = hand.top_gesture
        if top is not None:
            p.stab.update(top.name, top.score)
        else:
            p.stab.update(None)
        classified = top is not None and top.name != Gesture.NONE.value

        p.victory_seen = any(
            g.name == Gesture.VICTORY.value and g.score >= gates.victory.threshold
            for h in hands for g in h.gestures
        )
        p.thumb_active = p.stab.meets_hold(Gesture.THUMB_UP.value) or (
            top is not None and top.name == Gesture.THUMB_UP.value
            and p.stab.passes_threshold(top.name, top.score)
        )

        single = len(hands) == 1

        # --- single hand: five-finger zoom (CHAOS) and shaka pan ---
        if single and pose.five_fingers and p.mode0 == Mode.CHAOS:
            dz, raw = p.motion.single_hand_zoom(lm)
            s.zoom = p.motion.apply_zoom(s.zoom, dz)
            p.zooming = abs(raw) > self.preset.motion.zooming_speed
        else:
            p.motion.forget_hand_scale()

        if single and pose.shaka and not p.photo_open0:
            x, y = palm
            pan = self.preset.pan
            s.pan = ((0.5 - x) * pan.span_x, (0.5 - y) * pan.span_y)
            p.dwell.reset()

        # --- pointer, random pick, dwell click ---
        self._pointer_rules(p, hand, pose)

        # --- mode transitions (victory / pointing reserved for selection) ---
        if not p.victory_seen and not pose.pointing:
            if classified:
                assert top is not None
                if (top.name == Gesture.OPEN_PALM.value and p.mode0 == Mode.FORMED
                        and not moving and p.stab.meets_hold(Gesture.OPEN_PALM.value)):
                    self._set_mode(p, Mode.CHAOS)
                    p.stab.reset()
                elif top.name == Gesture.CLOSED_FIST.value and (
                        p.stab.meets_hold(Gesture.CLOSED_FIST.value)
                        or p.stab.passes_threshold(top.name, top.score)
                        or pose.all_folded):
                    self._form(p)
            else:
                # classifier gave nothing: a fully folded hand still means "fist"
                if pose.all_folded:
                    self._form(p)
                p.stab.reset()

        # --- FORMED: light pulse and ornament theme flick ---
        if p.mode0 == Mode.FORMED:
            if (p.victory_seen and p.stab.meets_hold(Gesture.VICTORY.value)
                    and p.cooldowns.ready(Action.PULSE)):
                rot = self.preset.rotation
                s.rotation_boost = clamp(max(s.rotation_boost, rot.pulse_boost), -rot.limit, rot.limit)
                s.pulse_token += 1
                p.cooldowns.start(Action.PULSE)
                p.events.append(SceneEvent(t_ms=p.t_ms, type=EventType.PULSE,
                                           pulse=PulseEvent(token=s.pulse_token)))
                logger.debug("Light pulse #%d", s.pulse_token)

            nav = self.preset.navigation
            if p.thumb_active and p.cooldowns.ready(Action.THEME) and abs(p.dx) > nav.theme_flick_dx:
                step = 1 if p.dx > 0 else -1
                s.theme = (s.theme + step) % nav.theme_count
                p.cooldowns.start(Action.THEME)
                p.events.append(SceneEvent(t_ms=p.t_ms, type=EventType.THEME,
                                           theme=ThemeEvent(index=s.theme, step=step)))
                logger.debug("Ornament theme -> %d", s.theme)

        # --- FORMED: open-hand rotation ---
        if p.mode0 == Mode.FORMED and single and pose.five_fingers:
            rot = self.preset.rotation
            if abs(p.dx) > rot.min_dx:
                s.rotation_boost = clamp(s.rotation_boost - p.dx * rot.gain, -rot.limit, rot.limit)
        else:
            self._decay_rotation(p)

        # --- two hands: spread zoom (any mode) ---
        if len(hands) == 2:
            dz = p.motion.two_hand_zoom(hands[0].landmarks, hands[1].landmarks)
            s.zoom = p.motion.apply_zoom(s.zoom, dz)
            if dz:
                p.zooming = True
        else:
            p.motion.forget_hand_distance()

    def _pointer_rules(self, p: _Pass, hand: Hand, pose: HandPose) -> None:
        s = p.state
        pointer_on = p.mode0 == Mode.CHAOS and (
            p.victory_seen
            or (not pose.five_fingers and not pose.shaka and (pose.pointing or pose.pinching))
        )
        if not pointer_on:
            p.dwell.reset()
            s.pointer = None
            return

        tip = hand.landmarks[INDEX_TIP]
        s.pointer = (clamp01(1.0 - tip[0]), clamp01(tip[1]))

        if (p.victory_seen and p.stab.meets_hold(Gesture.VICTORY.value)
                and p.cooldowns.ready(Action.PICK)):
            self._pick_random(p)
            p.dwell.reset()
            return

        if p.dwell.advance(p.dt, can_click=p.cooldowns.ready(Action.CLICK)):
            s.click_token += 1
            p.cooldowns.start(Action.CLICK)
            p.events.append(SceneEvent(t_ms=p.t_ms, type=EventType.CLICK,
                                       click=ClickEvent(token=s.click_token, pointer=s.pointer)))
            logger.debug("Dwell click #%d at %s", s.click_token, s.pointer)

    # ---------------------- shared rules ----------------------

    def _maybe_swipe(self, p: _Pass) -> None:
        s = p.state
        nav = self.preset.navigation
        if not (p.photo_open0 and p.pose is not None and p.pose.five_fingers):
            return
        if not p.cooldowns.ready(Action.SWIPE) or abs(p.dx) <= nav.swipe_dx:
            return
        step = 1 if p.dx > 0 else -1
        target = self.photos.neighbour(s.selected_photo, step)
        if target is None:
            return
        s.last_random_photo = target
        self._select(p, target, "swipe")
        p.cooldowns.start(Action.SWIPE)

    def _maybe_dismiss(self, p: _Pass) -> None:
        if not p.thumb_active or not p.cooldowns.ready(Action.DISMISS):
            return
        self._select(p, None, "dismiss")
        # CHAOS stays CHAOS; a formed tree is left alone
        p.cooldowns.start(Action.DISMISS)
        p.stab.reset()

    def _pick_random(self, p: _Pass) -> None:
        s = p.state
        # cooldown runs even when the index has nothing to offer
        p.cooldowns.start(Action.PICK)
        chosen = self.photos.pick_random(self.rng, exclude=s.last_random_photo)
        if chosen is None:
            return
        s.last_random_photo = chosen
        self._select(p, chosen, "random")

    def _form(self, p: _Pass) -> None:
        self._set_mode(p, Mode.FORMED)
        self._select(p, None, "fist")
        p.stab.reset()

    def _decay_rotation(self, p: _Pass) -> None:
        s = p.state
        rot = self.preset.rotation
        decayed = s.rotation_boost * rot.decay
        s.rotation_boost = 0.0 if abs(decayed) < rot.snap_eps else decayed

    # ---------------------- state writers ----------------------

    def _set_mode(self, p: _Pass, mode: Mode) -> None:
        if p.state.mode == mode:
            return
        logger.info("Mode %s -> %s", p.state.mode.value, mode.value)
        p.state.mode = mode
        p.events.append(SceneEvent(t_ms=p.t_ms, type=EventType.MODE, mode=ModeEvent(state=mode)))

    def _select(self, p: _Pass, photo: Optional[str], reason: str) -> None:
        if p.state.selected_photo == photo:
            return
        p.state.selected_photo = photo
        logger.debug("Selected photo -> %s (%s)", photo, reason)
        p.events.append(SceneEvent(t_ms=p.t_ms, type=EventType.SELECT,
                                   select=SelectEvent(photo=photo, reason=reason)))

    # ---------------------- outputs ----------------------

    def _outputs(self, p: _Pass, hands: Sequence[Hand]) -> SceneOutputs:
        s = p.state
        pose = p.pose
        gestures: Tuple[GestureCandidate, ...] = tuple(g for h in hands for g in h.gestures)
        debug = DebugSnapshot(
            hands_detected=len(hands),
            gestures=gestures,
            fingers=pose.fingers() if pose is not None else None,
            actions=ActionFlags(
                pointing=bool(pose and pose.pointing),
                zooming=p.zooming,
                pinching=bool(pose and pose.pinching),
                five_fingers=bool(pose and pose.five_fingers),
                shaka=bool(pose and pose.shaka),
            ),
            palm=s.motion.palm,
            movement=p.movement,
        )
        return SceneOutputs(
            t_ms=p.t_ms,
            mode=s.mode,
            pointer=s.pointer,
            hover_progress=s.hover_progress,
            click_token=s.click_token,
            pan=s.pan,
            zoom=s.zoom,
            rotation_boost=s.rotation_boost,
            selected_photo=s.selected_photo,
            theme=s.theme,
            pulse_token=s.pulse_token,
            events=tuple(p.events),
            debug=debug,
        )


def step(state: InterpreterState, frame: LandmarkFrame, elapsed_s: float,
         preset: Preset = DEFAULT_PRESET, photos: PhotoIndex | None = None,
         rng: random.Random | None = None) -> Tuple[InterpreterState, SceneOutputs]:
    """One pure interpretation pass; see Dispatcher.step."""
    return Dispatcher(preset, photos, rng).step(state, frame, elapsed_s)


class Interpreter:
    """
    Stateful convenience wrapper for the frame loop.
    Owns an InterpreterState and derives elapsed time from frame timestamps
    unless the caller measured it.
    """

    def __init__(self, preset: Preset = DEFAULT_PRESET, photos: PhotoIndex | None = None,
                 rng: random.Random | None = None, state: InterpreterState | None = None) -> None:
        self.dispatcher = Dispatcher(preset, photos, rng)
        self.state = state if state is not None else InterpreterState()
        self._last_t_ms: int | None = None

    @property
    def mode(self) -> Mode:
        return self.state.mode

    def process(self, frame: LandmarkFrame, elapsed_s: float | None = None) -> SceneOutputs:
        if elapsed_s is None:
            if self._last_t_ms is None:
                elapsed_s = 0.0
            else:
                elapsed_s = max(0, frame.t_ms - self._last_t_ms) / 1000.0
        self._last_t_ms = frame.t_ms
        self.state, out = self.dispatcher.step(self.state, frame, elapsed_s)
        return out

    def reset(self) -> None:
        self.state = InterpreterState()
        self._last_t_ms = None
