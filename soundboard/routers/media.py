"""Media endpoints - list, upload and serve audio files."""

import logging
from typing import Optional

from fastapi import APIRouter, File, Form, Request, UploadFile
from fastapi.responses import JSONResponse, Response

from soundboard.models import MediaListing, UploadResult
from soundboard.services import media_library
from soundboard.services.tone import fallback_tone_wav

logger = logging.getLogger(__name__)

router = APIRouter(tags=["media"])


@router.get("/api/sounds", response_model=MediaListing)
async def list_sounds():
    """Audio files in the sounds directory. Always succeeds."""
    return {"items": media_library.list_audio_files()}


@router.post("/api/upload-sound", response_model=UploadResult)
async def upload_sound(
    file: Optional[UploadFile] = File(None),
    label: Optional[str] = Form(None),
):
    if file is None:
        return JSONResponse({"error": "No file provided"}, status_code=400)
    try:
        data = await file.read()
        url, name = media_library.save_upload(data, file.filename, label)
    except OSError as e:
        logger.error(f"Saving upload {file.filename} failed: {e}")
        return JSONResponse({"error": "Failed to save file"}, status_code=500)
    return {"url": url, "name": name}


@router.get("/sounds/{name:path}")
async def serve_sound(name: str):
    try:
        data = media_library.read_media(name)
    except media_library.PathTraversalError:
        return Response("Forbidden", status_code=403)
    except OSError:
        return Response("Not Found", status_code=404)
    return Response(
        data,
        media_type=media_library.content_type_for(name),
        headers={"Cache-Control": media_library.CACHE_CONTROL},
    )


@router.get("/ephemeral/{token}")
async def serve_ephemeral(token: str, request: Request):
    blob = request.app.state.ephemeral.get(token)
    if blob is None:
        return Response("Not Found", status_code=404)
    data, content_type = blob
    return Response(data, media_type=content_type)


@router.get("/tone.wav")
async def tone():
    """Beep played for sounds that have no audio yet."""
    return Response(
        fallback_tone_wav(),
        media_type="audio/wav",
        headers={"Cache-Control": media_library.CACHE_CONTROL},
    )
