"""
Now-playing panel: which sound's metadata is on screen and when it goes away.

    hidden ──play──▶ visible_playing ──ended──▶ visible_ended ──timer──▶ hidden
                          │   ▲                    │   ▲
                  hover/click │ leave (not ended)  │   │ leave (ended, re-arm)
                          ▼   │                    ▼   │
                         visible_hovered ◀──hover/click┘

``close()`` hides from anywhere. A sound without audio plays the synthetic
tone, which has no end event, so it goes straight to ``visible_ended``.

Only one hide timer exists at a time. Any transition into a visible or
hovered state cancels it first, so a timer left over from an earlier sound
can never hide the panel after it was re-shown for another.
"""

import asyncio
import logging
from enum import Enum
from typing import Callable, Optional, Protocol

from soundboard.models import PanelSnapshot

logger = logging.getLogger(__name__)


class PanelState(str, Enum):
    HIDDEN = "hidden"
    VISIBLE_PLAYING = "visible_playing"
    VISIBLE_ENDED = "visible_ended"
    VISIBLE_HOVERED = "visible_hovered"


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...


class LoopScheduler:
    """Schedules on the running asyncio loop."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        return asyncio.get_running_loop().call_later(delay, callback)


class NowPlayingPanel:
    """
    State machine for the transient metadata panel.

    ``board`` is used to resolve a sound id to its section and sound; it needs
    a ``find_sound(sound_id)`` method.
    """

    def __init__(
        self,
        board,
        hide_delay_ms: int = 1800,
        scheduler: Optional[Scheduler] = None,
        default_show_url: Optional[str] = None,
    ):
        self.board = board
        self.hide_delay_ms = hide_delay_ms
        self.scheduler = scheduler or LoopScheduler()
        self.default_show_url = default_show_url
        self.state = PanelState.HIDDEN
        self.section_id: Optional[str] = None
        self.sound_id: Optional[str] = None
        self.playback_ended = False
        self._timer: Optional[TimerHandle] = None

    # -- timer ---------------------------------------------------------

    def _cancel_timer(self):
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _arm_timer(self):
        self._cancel_timer()
        self._timer = self.scheduler.call_later(self.hide_delay_ms / 1000, self._on_timer)

    def _on_timer(self):
        self._timer = None
        if self.state == PanelState.VISIBLE_HOVERED:
            return
        logger.debug(f"Hide timer fired for {self.sound_id}")
        self._hide()

    def _hide(self):
        self.state = PanelState.HIDDEN
        self.section_id = None
        self.sound_id = None
        self.playback_ended = False

    @property
    def visible(self) -> bool:
        return self.state != PanelState.HIDDEN

    @property
    def timer_armed(self) -> bool:
        return self._timer is not None

    # -- transitions ---------------------------------------------------

    def play(self, sound_id: str, synthetic: bool = False) -> bool:
        """Show the panel for ``sound_id``. Unknown ids change nothing."""
        found = self.board.find_sound(sound_id)
        if found is None:
            logger.debug(f"play: unknown sound {sound_id}")
            return False
        section, sound = found

        self._cancel_timer()
        self.section_id = section.id
        self.sound_id = sound.id
        self.playback_ended = False
        self.state = PanelState.VISIBLE_PLAYING
        if synthetic:
            self.ended()
        return True

    def ended(self, sound_id: Optional[str] = None):
        """Playback finished. Events for a sound no longer shown are stale."""
        if not self.visible:
            return
        if sound_id is not None and sound_id != self.sound_id:
            logger.debug(f"Ignoring stale end event for {sound_id}")
            return
        self.playback_ended = True
        if self.state == PanelState.VISIBLE_PLAYING:
            self.state = PanelState.VISIBLE_ENDED
            self._arm_timer()

    def hover_enter(self):
        if not self.visible:
            return
        self._cancel_timer()
        self.state = PanelState.VISIBLE_HOVERED

    click = hover_enter

    def hover_leave(self):
        if self.state != PanelState.VISIBLE_HOVERED:
            return
        if self.playback_ended:
            self.state = PanelState.VISIBLE_ENDED
            self._arm_timer()
        else:
            self.state = PanelState.VISIBLE_PLAYING

    def close(self):
        self._cancel_timer()
        self._hide()

    # -- view ----------------------------------------------------------

    def snapshot(self) -> PanelSnapshot:
        if not self.visible:
            return PanelSnapshot(state=self.state.value)
        found = self.board.find_sound(self.sound_id)
        if found is None:
            # Sound (or its section) was removed while shown.
            return PanelSnapshot(state=self.state.value, section_id=self.section_id, sound_id=self.sound_id)
        _, sound = found
        meta = sound.meta
        if meta and meta.episode_url:
            link_url, link_text = meta.episode_url, "Episode link"
        else:
            link_url, link_text = (meta.show_url if meta else None) or self.default_show_url, "Go to Show"
        return PanelSnapshot(
            state=self.state.value,
            section_id=self.section_id,
            sound_id=sound.id,
            label=sound.label,
            link_url=link_url,
            link_text=link_text if link_url else None,
            season_episode=meta.season_episode if meta else None,
        )
