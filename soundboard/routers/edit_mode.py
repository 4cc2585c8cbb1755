"""Edit mode toggle, password-gated once per session."""

from fastapi import APIRouter, Depends, HTTPException, Request

from soundboard.dependencies import get_session
from soundboard.models import EditModeState, EditToggleRequest
from soundboard.services.edit_gate import EditAuthError
from soundboard.services.sessions import ClientSession

router = APIRouter(prefix="/edit-mode", tags=["edit-mode"])


@router.get("", response_model=EditModeState)
async def get_edit_mode(session: ClientSession = Depends(get_session)):
    return EditModeState(edit_mode=session.edit.edit_mode, authorized=session.edit.authorized)


@router.post("/toggle", response_model=EditModeState)
async def toggle_edit_mode(
    request: Request,
    body: EditToggleRequest = EditToggleRequest(),
    session: ClientSession = Depends(get_session),
):
    """Leaving never asks; entering asks for the password until it was given once."""
    try:
        request.app.state.edit_gate.toggle(session.edit, body.password)
    except EditAuthError as e:
        raise HTTPException(status_code=401, detail=str(e))
    return EditModeState(edit_mode=session.edit.edit_mode, authorized=session.edit.authorized)
