"""
Media library: the audio files behind the board's buttons.

Files live in one flat storage directory (``settings.sounds_dir``) and are
served back under ``/sounds/<name>``.
"""

import base64
import logging
import re
import secrets
import uuid
from collections import OrderedDict
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from soundboard.config import settings

logger = logging.getLogger(__name__)

AUDIO_EXTENSIONS = (".mp3", ".wav", ".ogg", ".m4a")

CONTENT_TYPES = {
    ".mp3": "audio/mpeg",
    ".wav": "audio/wav",
    ".ogg": "audio/ogg",
    ".m4a": "audio/mp4",
}

CACHE_CONTROL = "public, max-age=31536000, immutable"


class PathTraversalError(ValueError):
    """Requested media path tries to climb out of the sounds directory."""


def sounds_dir() -> Path:
    return Path(settings.sounds_dir)


def media_url(name: str) -> str:
    return f"/sounds/{name}"


def content_type_for(name: str) -> str:
    return CONTENT_TYPES.get(Path(name.lower()).suffix, "application/octet-stream")


def list_audio_files(directory: Optional[Path] = None) -> List[Dict[str, str]]:
    """
    List playable files in the sounds directory, sorted by name.

    Never raises: a missing or unreadable directory is an empty listing.
    """
    directory = directory or sounds_dir()
    try:
        names = sorted(
            entry.name for entry in directory.iterdir()
            if entry.is_file() and entry.suffix.lower() in AUDIO_EXTENSIONS
        )
    except OSError as e:
        logger.warning(f"Could not list {directory}: {e}")
        return []
    return [{"name": name, "url": media_url(name)} for name in names]


def label_from_filename(filename: str) -> str:
    """'good_brother-take2.mp3' -> 'Good Brother Take2'."""
    stem = re.sub(r"\.[^.]+$", "", filename)
    words = re.sub(r"[-_\s]+", " ", stem).strip()
    return " ".join(word[:1].upper() + word[1:] for word in words.split(" ") if word)


def sanitize_filename(name: str) -> str:
    name = name.lower()
    name = re.sub(r"[^a-z0-9._-]+", "-", name)
    name = re.sub(r"-+", "-", name)
    return name.strip("-")


def build_upload_name(original_name: Optional[str], label: Optional[str] = None) -> str:
    """
    Filesystem-safe unique name for an upload.

    The base comes from the label (or the original name) without extension,
    and a random 8-hex suffix keeps repeated uploads apart.
    """
    original_name = original_name or "sound"
    base = sanitize_filename(re.sub(r"\.[^./]+$", "", label or original_name)) or "sound"
    ext_match = re.search(r"\.[a-z0-9]+$", original_name, re.IGNORECASE)
    ext = ext_match.group(0).lower() if ext_match else ".mp3"
    return f"{base}-{secrets.token_hex(4)}{ext}"


def save_upload(data: bytes, original_name: Optional[str], label: Optional[str] = None) -> Tuple[str, str]:
    """Write an upload into the sounds directory. Returns (url, filename)."""
    filename = build_upload_name(original_name, label)
    directory = sounds_dir()
    directory.mkdir(parents=True, exist_ok=True)
    (directory / filename).write_bytes(data)
    logger.info(f"Saved upload {filename} ({len(data)} bytes)")
    return media_url(filename), filename


def resolve_media_path(relative: str) -> Path:
    """Map a /sounds/<relative> request onto disk, refusing traversal."""
    if not relative:
        raise FileNotFoundError(relative)
    if ".." in relative or relative.startswith(("/", "\\")) or Path(relative).is_absolute():
        raise PathTraversalError(relative)
    base = sounds_dir().resolve()
    target = (base / relative).resolve()
    if not target.is_relative_to(base):
        raise PathTraversalError(relative)
    return target


def read_media(relative: str) -> bytes:
    return resolve_media_path(relative).read_bytes()


def to_data_url(data: bytes, content_type: str) -> str:
    """Inline encoding used when the file cannot be stored on disk."""
    if len(data) > settings.max_inline_upload_bytes:
        raise ValueError(
            f"{len(data)} bytes exceeds inline limit of {settings.max_inline_upload_bytes}"
        )
    return f"data:{content_type};base64,{base64.b64encode(data).decode('ascii')}"


class EphemeralMedia:
    """
    Process-lifetime blobs served under ``/ephemeral/<token>``.

    Last resort for uploads that could be neither saved nor inlined; gone on
    restart. Holds at most ``max_items`` blobs, dropping the oldest first.
    """

    def __init__(self, max_items: int = 32):
        self.max_items = max_items
        self._blobs: "OrderedDict[str, Tuple[bytes, str]]" = OrderedDict()

    def put(self, data: bytes, content_type: str) -> str:
        token = uuid.uuid4().hex
        self._blobs[token] = (data, content_type)
        while len(self._blobs) > self.max_items:
            dropped, _ = self._blobs.popitem(last=False)
            logger.info(f"Dropped ephemeral blob {dropped}")
        return f"/ephemeral/{token}"

    def get(self, token: str) -> Optional[Tuple[bytes, str]]:
        return self._blobs.get(token)

    def __len__(self):
        return len(self._blobs)


def store_audio(
    data: bytes,
    original_name: Optional[str],
    content_type: str,
    label: Optional[str],
    ephemeral: EphemeralMedia,
) -> str:
    """
    Persist an uploaded clip, degrading until something works.

    Order: file in the sounds directory, inline ``data:`` URL, ephemeral
    in-process blob. Returns the URL to store on the sound.
    """
    try:
        url, _ = save_upload(data, original_name, label)
        return url
    except OSError as e:
        logger.error(f"Upload failed, falling back to inline data URL: {e}")
    try:
        return to_data_url(data, content_type)
    except ValueError as e:
        logger.warning(f"Inline encoding refused, using ephemeral blob: {e}")
    return ephemeral.put(data, content_type)
