from __future__ import annotations

from pathlib import Path
from typing import Callable

import pytest

from soundboard.config import settings
from soundboard.models import Actor, Country, Section, SectionColor, Sound, SoundMeta
from soundboard.services.remote_store import MemoryStore, RemoteStoreError


class FlakyStore(MemoryStore):
    """Memory store that records calls and fails the ones listed in ``fail``.

    Entries are an operation name ("select") or an (operation, table) pair.
    """

    def __init__(self, fail=()) -> None:
        super().__init__()
        self.fail = set(fail)
        self.calls: list[tuple[str, str]] = []

    def _maybe_fail(self, op: str, table: str) -> None:
        self.calls.append((op, table))
        if op in self.fail or (op, table) in self.fail:
            raise RemoteStoreError(f"{op} {table}: connection refused")

    async def select(self, table, *args, **kwargs):
        self._maybe_fail("select", table)
        return await super().select(table, *args, **kwargs)

    async def insert(self, table, rows):
        self._maybe_fail("insert", table)
        return await super().insert(table, rows)

    async def update(self, table, values, id):
        self._maybe_fail("update", table)
        return await super().update(table, values, id)

    async def delete(self, table, id):
        self._maybe_fail("delete", table)
        return await super().delete(table, id)


class FakeTimer:
    def __init__(self, when: float, callback: Callable[[], None]) -> None:
        self.when = when
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeScheduler:
    """Manual clock for the now-playing hide timer."""

    def __init__(self) -> None:
        self.now = 0.0
        self.timers: list[FakeTimer] = []

    def call_later(self, delay: float, callback: Callable[[], None]) -> FakeTimer:
        timer = FakeTimer(self.now + delay, callback)
        self.timers.append(timer)
        return timer

    def advance(self, seconds: float) -> None:
        self.now += seconds
        for timer in sorted(self.timers, key=lambda t: t.when):
            if not timer.cancelled and not timer.fired and timer.when <= self.now:
                timer.fired = True
                timer.callback()

    @property
    def armed(self) -> list[FakeTimer]:
        return [t for t in self.timers if not t.cancelled and not t.fired]


@pytest.fixture
def sounds_dir(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    directory = tmp_path / "sounds"
    directory.mkdir()
    monkeypatch.setattr(settings, "sounds_dir", str(directory))
    return directory


@pytest.fixture
def scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture
def sample_sections() -> list[Section]:
    return [
        Section(
            id="s1",
            title="Function",
            color=SectionColor.CYAN,
            sounds=[
                Sound(id="us-daisy", label="US Daisy", audio_url="/sounds/a.mp3",
                      meta=SoundMeta(country=Country.US, actors=[Actor.DAISY], nsfw=False)),
                Sound(id="uk-nick", label="UK Nick", audio_url="/sounds/b.mp3",
                      meta=SoundMeta(country=Country.UK, actors=[Actor.NICK], nsfw=True,
                                     episode_url="https://example.com/ep1")),
                Sound(id="bare", label="No Meta"),
            ],
        ),
        Section(
            id="s2",
            title="Special Effects",
            color=SectionColor.ORANGE,
            sounds=[
                Sound(id="uk-daisy-nick", label="UK Duo",
                      meta=SoundMeta(country=Country.UK, actors=[Actor.DAISY, Actor.NICK],
                                     show_url="https://example.com/show")),
                Sound(id="nsfw-only", label="Rude", meta=SoundMeta(nsfw=True)),
            ],
        ),
    ]
