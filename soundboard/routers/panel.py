"""Now-playing panel endpoints, driven by the page's playback and pointer events."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from soundboard.dependencies import get_board, get_session
from soundboard.models import PanelSnapshot
from soundboard.services.board_store import BoardStore
from soundboard.services.sessions import ClientSession

router = APIRouter(prefix="/panel", tags=["panel"])


@router.get("", response_model=PanelSnapshot)
async def get_panel(session: ClientSession = Depends(get_session)):
    return session.panel.snapshot()


@router.post("/play/{sound_id}", response_model=PanelSnapshot)
async def play(
    sound_id: str,
    session: ClientSession = Depends(get_session),
    board: BoardStore = Depends(get_board),
):
    """Show the panel for a sound. Sounds without audio play the fallback tone."""
    found = board.find_sound(sound_id)
    if found is None:
        raise HTTPException(status_code=404, detail=f"Sound not found: {sound_id}")
    _, sound = found
    session.panel.play(sound_id, synthetic=not sound.audio_url)
    return session.panel.snapshot()


@router.post("/ended", response_model=PanelSnapshot)
async def ended(sound_id: Optional[str] = None, session: ClientSession = Depends(get_session)):
    session.panel.ended(sound_id)
    return session.panel.snapshot()


@router.post("/hover-enter", response_model=PanelSnapshot)
async def hover_enter(session: ClientSession = Depends(get_session)):
    session.panel.hover_enter()
    return session.panel.snapshot()


@router.post("/hover-leave", response_model=PanelSnapshot)
async def hover_leave(session: ClientSession = Depends(get_session)):
    session.panel.hover_leave()
    return session.panel.snapshot()


@router.post("/click", response_model=PanelSnapshot)
async def click(session: ClientSession = Depends(get_session)):
    session.panel.click()
    return session.panel.snapshot()


@router.post("/close", response_model=PanelSnapshot)
async def close(session: ClientSession = Depends(get_session)):
    session.panel.close()
    return session.panel.snapshot()
