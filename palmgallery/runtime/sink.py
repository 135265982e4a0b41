from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from palmgallery.core.control import OutputChannel
from palmgallery.core.types import EventType, LandmarkFrame, SceneEvent, SceneOutputs
from palmgallery.runtime.recording import SessionLog

logger = logging.getLogger(__name__)


def describe(ev: SceneEvent) -> str:
    if ev.type == EventType.MODE and ev.mode:
        return f"[MODE] {ev.mode.state.value}"
    if ev.type == EventType.SELECT and ev.select:
        return f"[PHOTO] {ev.select.photo or '(closed)'} via {ev.select.reason}"
    if ev.type == EventType.CLICK and ev.click:
        return f"[CLICK] #{ev.click.token} at {ev.click.pointer}"
    if ev.type == EventType.PULSE and ev.pulse:
        return f"[PULSE] #{ev.pulse.token}"
    if ev.type == EventType.THEME and ev.theme:
        return f"[THEME] {ev.theme.index} ({ev.theme.step:+d})"
    return f"[{ev.type.value}]"


@dataclass
class SceneSink:
    """
    Delivery point for each pass: publishes outputs to the renderer's
    channel, logs discrete events, and optionally records the session.
    """
    channel: OutputChannel
    log: Optional[SessionLog] = None

    def apply(self, frame: LandmarkFrame, out: SceneOutputs) -> None:
        self.channel.publish(out)
        for ev in out.events:
            logger.info(describe(ev))
        if self.log is not None:
            self.log.write(frame, out)

    def close(self) -> None:
        if self.log is not None:
            self.log.close()
            self.log = None
