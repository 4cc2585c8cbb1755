import pytest

from conftest import FakeScheduler

from soundboard.services.board_store import BoardStore
from soundboard.services.now_playing import NowPlayingPanel
from soundboard.services.remote_store import MemoryStore
from soundboard.services.sessions import SessionRegistry


@pytest.fixture
def registry(sample_sections, scheduler: FakeScheduler) -> SessionRegistry:
    board = BoardStore(MemoryStore())
    board.sections = sample_sections
    return SessionRegistry(lambda: NowPlayingPanel(board, scheduler=scheduler), max_sessions=3)


def test_known_cookie_returns_same_session(registry: SessionRegistry) -> None:
    first = registry.get_or_create(None)
    assert registry.get_or_create(first.id) is first
    assert len(registry) == 1


def test_unknown_cookie_gets_a_fresh_id(registry: SessionRegistry) -> None:
    session = registry.get_or_create("forged-or-expired")
    assert session.id != "forged-or-expired"
    assert "forged-or-expired" not in registry


def test_cookieless_requests_stay_within_cap(registry: SessionRegistry) -> None:
    for _ in range(50):
        registry.get_or_create(None)
    assert len(registry) == 3


def test_least_recently_used_session_is_evicted_and_closed(
    registry: SessionRegistry, scheduler: FakeScheduler
) -> None:
    oldest = registry.get_or_create(None)
    oldest.panel.play("us-daisy")
    oldest.panel.ended()
    assert scheduler.armed

    kept = registry.get_or_create(None)
    registry.get_or_create(None)
    registry.get_or_create(kept.id)
    registry.get_or_create(None)

    assert oldest.id not in registry
    assert kept.id in registry
    assert not oldest.panel.visible
    assert scheduler.armed == []
