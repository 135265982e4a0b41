import random

import pytest

from palmgallery.core.config import DEFAULT_PRESET
from palmgallery.core.errors import PhotoIndexError
from palmgallery.core.photos import PhotoIndex
from palmgallery.core.types import EventType, Hand, LandmarkFrame, Mode
from palmgallery.interpreter.motion import amplify
from palmgallery.interpreter.state_machine import Interpreter, InterpreterState, step
from palmgallery.sensor.synthetic import make_frame, make_hand

DT = 1 / 30


def run(it, frames, dt=DT):
    outs = []
    for f in frames:
        outs.append(it.process(f, elapsed_s=dt))
    return outs


def events_of(outs, etype):
    return [e for o in outs for e in o.events if e.type == etype]


def test_fist_forms_tree_and_clears_selection():
    it = Interpreter(DEFAULT_PRESET, state=InterpreterState(selected_photo="b.jpg"))
    out = it.process(make_frame(0, make_hand("fist", gestures=[("Closed_Fist", 0.9)])), elapsed_s=DT)

    assert out.mode == Mode.FORMED
    assert out.selected_photo is None
    assert [e.type for e in out.events] == [EventType.MODE, EventType.SELECT]
    assert out.events[1].select.reason == "fist"


def test_unclassified_folded_hand_falls_back_to_fist():
    it = Interpreter(DEFAULT_PRESET)
    out = it.process(make_frame(0, make_hand("fist")), elapsed_s=DT)
    assert out.mode == Mode.FORMED


def test_pointing_blocks_fist_transition():
    it = Interpreter(DEFAULT_PRESET)
    outs = run(it, [make_frame(i * 33, make_hand("point", gestures=[("Closed_Fist", 0.9)])) for i in range(10)])
    assert all(o.mode == Mode.CHAOS for o in outs)


def test_victory_candidate_blocks_fist_transition():
    it = Interpreter(DEFAULT_PRESET)
    hand = make_hand("fist", gestures=[("Closed_Fist", 0.7), ("Victory", 0.65)])
    outs = run(it, [make_frame(i * 33, hand) for i in range(10)])
    assert all(o.mode == Mode.CHAOS for o in outs)


def test_victory_on_second_hand_blocks_fist_transition():
    it = Interpreter(DEFAULT_PRESET)
    a = make_hand("fist", palm=(0.3, 0.5), gestures=[("Closed_Fist", 0.9)])
    b = make_hand("victory", palm=(0.7, 0.5), gestures=[("Victory", 0.8)])
    out = it.process(make_frame(0, a, b), elapsed_s=DT)
    assert out.mode == Mode.CHAOS


def test_open_palm_held_in_formed_returns_to_chaos():
    it = Interpreter(DEFAULT_PRESET, state=InterpreterState(mode=Mode.FORMED))
    hand = make_hand("open", gestures=[("Open_Palm", 0.9)])

    outs = run(it, [make_frame(i * 33, hand) for i in range(11)])
    assert all(o.mode == Mode.FORMED for o in outs)

    out = it.process(make_frame(11 * 33, hand), elapsed_s=DT)
    assert out.mode == Mode.CHAOS
    assert events_of([out], EventType.MODE)[0].mode.state == Mode.CHAOS


def test_open_palm_while_moving_stays_formed():
    it = Interpreter(DEFAULT_PRESET, state=InterpreterState(mode=Mode.FORMED))
    frames = [make_frame(i * 33, make_hand("open", palm=(0.3 + 0.01 * i, 0.5), gestures=[("Open_Palm", 0.9)]))
              for i in range(20)]
    outs = run(it, frames)
    assert all(o.mode == Mode.FORMED for o in outs)


def test_victory_pick_never_repeats_previous_photo():
    photos = PhotoIndex(files=["a.jpg", "b.jpg", "c.jpg"])
    hand = make_hand("victory", gestures=[("Victory", 0.9)])
    for seed in range(50):
        it = Interpreter(DEFAULT_PRESET, photos=photos, rng=random.Random(seed),
                         state=InterpreterState(last_random_photo="b.jpg"))
        outs = run(it, [make_frame(i * 33, hand) for i in range(6)])
        assert outs[4].selected_photo is None
        assert outs[5].selected_photo in ("a.jpg", "c.jpg")


def test_victory_pick_with_empty_index_is_noop():
    it = Interpreter(DEFAULT_PRESET, photos=PhotoIndex())
    hand = make_hand("victory", gestures=[("Victory", 0.9)])
    outs = run(it, [make_frame(i * 33, hand) for i in range(10)])
    assert all(o.selected_photo is None for o in outs)
    assert not events_of(outs, EventType.SELECT)


def test_unreachable_photo_list_is_not_polled_every_frame():
    calls = []

    def broken():
        calls.append(1)
        raise PhotoIndexError("service down")

    # no load backoff: only the pick cooldown limits attempts
    it = Interpreter(DEFAULT_PRESET, photos=PhotoIndex(loader=broken, retry_s=0.0))
    hand = make_hand("victory", gestures=[("Victory", 0.9)])
    outs = run(it, [make_frame(i * 33, hand) for i in range(60)])  # 2 s

    assert 1 <= len(calls) <= 2
    assert all(o.selected_photo is None for o in outs)


def test_dwell_click_fires_once():
    it = Interpreter(DEFAULT_PRESET)
    hand = make_hand("point")
    outs = run(it, [make_frame(i * 33, hand) for i in range(40)])  # ~1.33 s

    clicks = events_of(outs, EventType.CLICK)
    assert len(clicks) == 1
    assert outs[-1].click_token == clicks[0].click.token
    assert outs[10].hover_progress == pytest.approx(11 * DT / 1.2)
    assert all(o.pointer is not None for o in outs)
    # pointer is the mirrored index tip
    tip = hand.landmarks[8]
    assert outs[0].pointer == pytest.approx((1 - tip[0], tip[1]))


def test_pointer_kept_until_click_cooldown_drains():
    it = Interpreter(DEFAULT_PRESET, state=InterpreterState(selected_photo="a.jpg"))
    run(it, [make_frame(i * 33, make_hand("point")) for i in range(40)])

    outs = run(it, [make_frame(0) for _ in range(30)], dt=0.1)
    assert outs[0].pointer is not None
    assert all(o.hover_progress == 0.0 for o in outs)
    assert outs[-1].pointer is None
    assert outs[-1].selected_photo == "a.jpg"


def test_no_hand_without_click_clears_pointer():
    it = Interpreter(DEFAULT_PRESET)
    run(it, [make_frame(i * 33, make_hand("point")) for i in range(5)])
    out = it.process(make_frame(200), elapsed_s=DT)
    assert out.pointer is None
    assert out.hover_progress == 0.0


def test_two_hands_moving_closer_zoom_out():
    it = Interpreter(DEFAULT_PRESET)
    it.process(make_frame(0, make_hand("point", palm=(0.3, 0.5)), make_hand("point", palm=(0.7, 0.5))),
               elapsed_s=DT)
    out = it.process(make_frame(33, make_hand("point", palm=(0.325, 0.5)), make_hand("point", palm=(0.675, 0.5))),
                     elapsed_s=DT)
    assert out.zoom == pytest.approx(-12.5)
    assert out.zoom == pytest.approx(amplify(-0.05, 30) * 100)


def test_two_hands_moving_apart_zoom_in():
    it = Interpreter(DEFAULT_PRESET)
    it.process(make_frame(0, make_hand("point", palm=(0.4, 0.5)), make_hand("point", palm=(0.6, 0.5))),
               elapsed_s=DT)
    out = it.process(make_frame(33, make_hand("point", palm=(0.35, 0.5)), make_hand("point", palm=(0.65, 0.5))),
                     elapsed_s=DT)
    assert out.zoom > 0
    assert out.debug.actions.zooming


def test_zoom_stays_clamped():
    it = Interpreter(DEFAULT_PRESET)
    for i in range(60):
        half = 0.05 if i % 2 == 0 else 0.45
        out = it.process(make_frame(i * 33, make_hand("point", palm=(0.5 - half, 0.5)),
                                    make_hand("point", palm=(0.5 + half, 0.5))), elapsed_s=DT)
        assert -20.0 <= out.zoom <= 40.0


def test_single_open_hand_zoom_in_chaos():
    it = Interpreter(DEFAULT_PRESET)
    it.process(make_frame(0, make_hand("open", scale=0.25)), elapsed_s=DT)
    out = it.process(make_frame(33, make_hand("open", scale=0.30)), elapsed_s=DT)
    raw = 0.52 * 0.30 - 0.52 * 0.25
    assert out.zoom == pytest.approx(amplify(raw, 50) * 200)


def test_reappearing_hands_do_not_jump_zoom():
    it = Interpreter(DEFAULT_PRESET)
    it.process(make_frame(0, make_hand("point", palm=(0.2, 0.5)), make_hand("point", palm=(0.8, 0.5))),
               elapsed_s=DT)
    it.process(make_frame(33), elapsed_s=DT)
    out = it.process(make_frame(66, make_hand("point", palm=(0.45, 0.5)), make_hand("point", palm=(0.55, 0.5))),
                     elapsed_s=DT)
    assert out.zoom == 0.0


def test_rotation_clamped_then_decays_to_zero():
    it = Interpreter(DEFAULT_PRESET, state=InterpreterState(mode=Mode.FORMED))
    outs = run(it, [make_frame(i * 33, make_hand("open", palm=(0.2 + 0.05 * i, 0.5))) for i in range(13)])
    assert all(-3.0 <= o.rotation_boost <= 3.0 for o in outs)
    assert outs[-1].rotation_boost == pytest.approx(3.0)

    prev = outs[-1].rotation_boost
    for _ in range(300):
        out = it.process(make_frame(0), elapsed_s=DT)
        if prev == 0.0:
            assert out.rotation_boost == 0.0
        else:
            assert abs(out.rotation_boost) < abs(prev)
        prev = out.rotation_boost
    assert prev == 0.0


def test_light_pulse_in_formed():
    it = Interpreter(DEFAULT_PRESET, state=InterpreterState(mode=Mode.FORMED))
    hand = make_hand("victory", gestures=[("Victory", 0.9)])
    outs = run(it, [make_frame(i * 33, hand) for i in range(6)])

    assert outs[4].pulse_token == 0
    assert outs[5].pulse_token == 1
    assert len(events_of(outs, EventType.PULSE)) == 1
    # boosted to 2.0, then decays once because the hand is not open
    assert outs[5].rotation_boost == pytest.approx(2.0 * 0.95)
    assert all(o.pointer is None for o in outs)


def test_thumb_flick_cycles_theme():
    it = Interpreter(DEFAULT_PRESET, state=InterpreterState(mode=Mode.FORMED))
    it.process(make_frame(0, make_hand("thumb_up", palm=(0.5, 0.5), gestures=[("Thumb_Up", 0.9)])), elapsed_s=DT)
    out = it.process(make_frame(33, make_hand("thumb_up", palm=(0.49, 0.5), gestures=[("Thumb_Up", 0.9)])),
                     elapsed_s=DT)
    assert out.theme == 1
    assert out.events[0].theme.step == 1

    # still cooling down
    out = it.process(make_frame(66, make_hand("thumb_up", palm=(0.48, 0.5), gestures=[("Thumb_Up", 0.9)])),
                     elapsed_s=DT)
    assert out.theme == 1


def test_theme_wraps_backwards():
    it = Interpreter(DEFAULT_PRESET, state=InterpreterState(mode=Mode.FORMED))
    it.process(make_frame(0, make_hand("thumb_up", palm=(0.5, 0.5), gestures=[("Thumb_Up", 0.9)])), elapsed_s=DT)
    out = it.process(make_frame(33, make_hand("thumb_up", palm=(0.51, 0.5), gestures=[("Thumb_Up", 0.9)])),
                     elapsed_s=DT)
    assert out.theme == 2


def test_thumb_dismisses_open_photo():
    it = Interpreter(DEFAULT_PRESET, state=InterpreterState(selected_photo="b.jpg"))
    out = it.process(make_frame(0, make_hand("thumb_up", gestures=[("Thumb_Up", 0.9)])), elapsed_s=DT)
    assert out.selected_photo is None
    assert out.mode == Mode.CHAOS
    assert out.events[-1].select.reason == "dismiss"


def test_swipe_navigates_with_wraparound():
    photos = PhotoIndex(files=["a.jpg", "b.jpg", "c.jpg"])
    it = Interpreter(DEFAULT_PRESET, photos=photos, state=InterpreterState(selected_photo="c.jpg"))
    it.process(make_frame(0, make_hand("open", palm=(0.5, 0.5))), elapsed_s=DT)
    out = it.process(make_frame(33, make_hand("open", palm=(0.47, 0.5))), elapsed_s=DT)
    assert out.selected_photo == "a.jpg"

    # swipe cooldown still running
    out = it.process(make_frame(66, make_hand("open", palm=(0.44, 0.5))), elapsed_s=DT)
    assert out.selected_photo == "a.jpg"


def test_swipe_back():
    photos = PhotoIndex(files=["a.jpg", "b.jpg", "c.jpg"])
    it = Interpreter(DEFAULT_PRESET, photos=photos, state=InterpreterState(selected_photo="a.jpg"))
    it.process(make_frame(0, make_hand("open", palm=(0.5, 0.5))), elapsed_s=DT)
    out = it.process(make_frame(33, make_hand("open", palm=(0.53, 0.5))), elapsed_s=DT)
    assert out.selected_photo == "c.jpg"


def test_shaka_pans_when_no_photo_open():
    it = Interpreter(DEFAULT_PRESET)
    out = it.process(make_frame(0, make_hand("shaka", palm=(0.3, 0.4))), elapsed_s=DT)
    assert out.pan == pytest.approx((4.0, 1.2))
    assert out.pointer is None

    it = Interpreter(DEFAULT_PRESET, state=InterpreterState(selected_photo="a.jpg"))
    out = it.process(make_frame(0, make_hand("shaka", palm=(0.3, 0.4))), elapsed_s=DT)
    assert out.pan == (0.0, 0.0)


def test_incomplete_hand_counts_as_no_hand():
    it = Interpreter(DEFAULT_PRESET)
    good = make_hand("fist", gestures=[("Closed_Fist", 0.9)])
    broken = Hand(landmarks=good.landmarks[:10], gestures=good.gestures)

    out = it.process(LandmarkFrame(t_ms=0, hands=(good, broken)), elapsed_s=DT)
    assert out.mode == Mode.CHAOS
    assert out.debug.hands_detected == 0
    assert out.pointer is None


def test_step_does_not_mutate_input_state():
    state = InterpreterState()
    new, out = step(state, make_frame(0, make_hand("fist", gestures=[("Closed_Fist", 0.9)])), DT)
    assert new.mode == Mode.FORMED
    assert state.mode == Mode.CHAOS
    assert state.hold.count == 0
    assert all(v == 0.0 for v in state.cooldowns.values())


def test_mode_is_always_chaos_or_formed():
    rng = random.Random(7)
    poses = ["open", "fist", "point", "victory", "shaka", "thumb_up", "pinch", None]
    names = ["Open_Palm", "Closed_Fist", "Victory", "Thumb_Up", "Pointing_Up", "None"]
    it = Interpreter(DEFAULT_PRESET, photos=PhotoIndex(files=["a.jpg", "b.jpg"]), rng=rng)
    for i in range(500):
        pose = rng.choice(poses)
        if pose is None:
            f = make_frame(i * 33)
        else:
            palm = (rng.uniform(0.3, 0.7), rng.uniform(0.3, 0.7))
            f = make_frame(i * 33, make_hand(pose, palm=palm, gestures=[(rng.choice(names), rng.random())]))
        out = it.process(f)
        assert out.mode in (Mode.CHAOS, Mode.FORMED)
        assert -20.0 <= out.zoom <= 40.0
        assert -3.0 <= out.rotation_boost <= 3.0
        assert 0.0 <= out.hover_progress <= 1.0
        if out.pointer is not None:
            assert 0.0 <= out.pointer[0] <= 1.0 and 0.0 <= out.pointer[1] <= 1.0
