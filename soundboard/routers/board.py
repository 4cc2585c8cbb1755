"""Board endpoints - read the (filtered) board and edit sections and sounds."""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile

from soundboard.dependencies import get_board, require_edit_mode
from soundboard.models import Section, SectionUpdate, Sound, SoundUpdate
from soundboard.services import media_library
from soundboard.services.board_store import BoardStore
from soundboard.services.filters import filter_sections, parse_actors, parse_country

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/board", tags=["board"])


def _require_sound(board: BoardStore, section_id: str, sound_id: str) -> Sound:
    section = board.get_section(section_id)
    if section is None:
        raise HTTPException(status_code=404, detail=f"Section not found: {section_id}")
    sound = next((s for s in section.sounds if s.id == sound_id), None)
    if sound is None:
        raise HTTPException(status_code=404, detail=f"Sound not found: {sound_id}")
    return sound


@router.get("", response_model=List[Section])
async def get_board_view(
    country: str = "ALL",
    actors: Optional[str] = None,
    sfw_only: bool = False,
    board: BoardStore = Depends(get_board),
):
    """
    The board as the user sees it.

    - **country**: ALL, US or UK (sounds without a country always show)
    - **actors**: comma separated names; keeps sounds featuring any of them
    - **sfw_only**: hide sounds flagged NSFW
    """
    try:
        country_filter = parse_country(country)
        actor_filter = parse_actors(actors)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return filter_sections(board.sections, country_filter, actor_filter, sfw_only)


@router.post("/reload", response_model=List[Section])
async def reload_board(board: BoardStore = Depends(get_board)):
    """Re-fetch the board from the store."""
    return await board.load_board()


@router.post("/sections", response_model=Section, dependencies=[Depends(require_edit_mode)])
async def add_section(board: BoardStore = Depends(get_board)):
    return await board.add_section()


@router.patch("/sections/{section_id}", response_model=Section, dependencies=[Depends(require_edit_mode)])
async def update_section(section_id: str, update: SectionUpdate, board: BoardStore = Depends(get_board)):
    if not board.set_section_title(section_id, update.title):
        raise HTTPException(status_code=404, detail=f"Section not found: {section_id}")
    return board.get_section(section_id)


@router.delete("/sections/{section_id}", dependencies=[Depends(require_edit_mode)])
async def remove_section(section_id: str, board: BoardStore = Depends(get_board)):
    if not board.remove_section(section_id):
        raise HTTPException(status_code=404, detail=f"Section not found: {section_id}")
    return {"status": "deleted", "section_id": section_id}


@router.post("/sections/{section_id}/sounds", response_model=Sound, dependencies=[Depends(require_edit_mode)])
async def add_sound(section_id: str, board: BoardStore = Depends(get_board)):
    sound = await board.add_sound(section_id)
    if sound is None:
        raise HTTPException(status_code=404, detail=f"Section not found: {section_id}")
    return sound


@router.patch(
    "/sections/{section_id}/sounds/{sound_id}",
    response_model=Sound,
    dependencies=[Depends(require_edit_mode)],
)
async def update_sound(
    section_id: str,
    sound_id: str,
    update: SoundUpdate,
    board: BoardStore = Depends(get_board),
):
    """Apply any of label / audioUrl / meta (meta is merged, not replaced)."""
    _require_sound(board, section_id, sound_id)
    if update.label is not None:
        board.set_sound_label(section_id, sound_id, update.label)
    if update.audio_url is not None:
        board.set_sound_audio(section_id, sound_id, update.audio_url)
    if update.meta is not None:
        board.set_sound_meta(section_id, sound_id, update.meta)
    return _require_sound(board, section_id, sound_id)


@router.post(
    "/sections/{section_id}/sounds/{sound_id}/audio",
    response_model=Sound,
    dependencies=[Depends(require_edit_mode)],
)
async def upload_sound_audio(
    request: Request,
    section_id: str,
    sound_id: str,
    file: UploadFile = File(...),
    label: Optional[str] = Form(None),
    board: BoardStore = Depends(get_board),
):
    """
    Attach an audio file to a sound.

    Stored in the media directory when possible, otherwise inlined as a data
    URL, otherwise held in memory until restart.
    """
    sound = _require_sound(board, section_id, sound_id)
    content_type = file.content_type or ""
    if not content_type.startswith("audio/"):
        raise HTTPException(status_code=400, detail=f"Not an audio file: {content_type or 'unknown type'}")

    data = await file.read()
    url = media_library.store_audio(
        data,
        file.filename,
        content_type,
        label or sound.label,
        request.app.state.ephemeral,
    )
    board.set_sound_audio(section_id, sound_id, url)
    return _require_sound(board, section_id, sound_id)
