"""Request-scoped access to the app's board and the caller's session."""

from fastapi import Depends, HTTPException, Request, Response

from soundboard.config import settings
from soundboard.services.board_store import BoardStore
from soundboard.services.sessions import ClientSession


def get_board(request: Request) -> BoardStore:
    return request.app.state.board


def get_session(request: Request, response: Response) -> ClientSession:
    registry = request.app.state.sessions
    cookie = request.cookies.get(settings.session_cookie)
    session = registry.get_or_create(cookie)
    if session.id != cookie:
        response.set_cookie(settings.session_cookie, session.id, httponly=True, samesite="lax")
    return session


def require_edit_mode(session: ClientSession = Depends(get_session)) -> ClientSession:
    if not session.edit.edit_mode:
        raise HTTPException(status_code=403, detail="Edit mode is off")
    return session
