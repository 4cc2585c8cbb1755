import base64
import re
from pathlib import Path

import pytest

from soundboard.config import settings
from soundboard.services import media_library
from soundboard.services.media_library import (
    EphemeralMedia,
    PathTraversalError,
    build_upload_name,
    content_type_for,
    label_from_filename,
    list_audio_files,
    resolve_media_path,
    sanitize_filename,
    store_audio,
)


def test_upload_name_from_label() -> None:
    name = build_upload_name("Good Brother!!.mp3", "Good Brother")
    assert re.fullmatch(r"good-brother-[0-9a-f]{8}\.mp3", name)


def test_upload_name_from_original_when_no_label() -> None:
    assert re.fullmatch(r"good-brother-[0-9a-f]{8}\.mp3", build_upload_name("Good Brother!!.MP3"))
    assert re.fullmatch(r"sound-[0-9a-f]{8}\.mp3", build_upload_name(None))
    assert re.fullmatch(r"sound-[0-9a-f]{8}\.wav", build_upload_name("!!!.wav"))
    assert re.fullmatch(r"clip-[0-9a-f]{8}\.mp3", build_upload_name("clip"))


def test_upload_names_are_unique() -> None:
    assert build_upload_name("a.mp3") != build_upload_name("a.mp3")


def test_sanitize_filename() -> None:
    assert sanitize_filename("  Hello, World!! ") == "hello-world"
    assert sanitize_filename("a__b..c") == "a__b..c"
    assert sanitize_filename("---") == ""


def test_label_from_filename() -> None:
    assert label_from_filename("good_brother.mp3") == "Good Brother"
    assert label_from_filename("too--hard  again.ogg") == "Too Hard Again"
    assert label_from_filename("keynote") == "Keynote"


def test_list_audio_files_filters_and_sorts(sounds_dir: Path) -> None:
    for name in ["b.mp3", "a.WAV", "notes.txt", "c.m4a", "d.ogg"]:
        (sounds_dir / name).write_bytes(b"x")
    (sounds_dir / "nested.mp3").mkdir()

    items = list_audio_files()

    assert [i["name"] for i in items] == ["a.WAV", "b.mp3", "c.m4a", "d.ogg"]
    assert items[1]["url"] == "/sounds/b.mp3"


def test_list_audio_files_missing_dir(tmp_path: Path) -> None:
    assert list_audio_files(tmp_path / "nope") == []


def test_resolve_media_path(sounds_dir: Path) -> None:
    assert resolve_media_path("x/y.mp3") == sounds_dir.resolve() / "x" / "y.mp3"
    with pytest.raises(PathTraversalError):
        resolve_media_path("../secret.mp3")
    with pytest.raises(FileNotFoundError):
        resolve_media_path("")


def test_content_types() -> None:
    assert content_type_for("a.MP3") == "audio/mpeg"
    assert content_type_for("a.wav") == "audio/wav"
    assert content_type_for("a.ogg") == "audio/ogg"
    assert content_type_for("a.m4a") == "audio/mp4"
    assert content_type_for("a.flac") == "application/octet-stream"


def test_store_audio_prefers_disk(sounds_dir: Path) -> None:
    url = store_audio(b"RIFF", "Bang.wav", "audio/wav", "Big Bang", EphemeralMedia())
    assert re.fullmatch(r"/sounds/big-bang-[0-9a-f]{8}\.wav", url)
    assert (sounds_dir / url.rsplit("/", 1)[1]).read_bytes() == b"RIFF"


def test_store_audio_falls_back_to_data_url(monkeypatch: pytest.MonkeyPatch) -> None:
    def broken(*args, **kwargs):
        raise PermissionError("read-only filesystem")

    monkeypatch.setattr(media_library, "save_upload", broken)
    url = store_audio(b"abc", "a.mp3", "audio/mpeg", None, EphemeralMedia())
    assert url == "data:audio/mpeg;base64," + base64.b64encode(b"abc").decode()


def test_store_audio_last_resort_is_ephemeral(monkeypatch: pytest.MonkeyPatch) -> None:
    def broken(*args, **kwargs):
        raise PermissionError("read-only filesystem")

    monkeypatch.setattr(media_library, "save_upload", broken)
    monkeypatch.setattr(settings, "max_inline_upload_bytes", 2)
    ephemeral = EphemeralMedia()

    url = store_audio(b"abc", "a.mp3", "audio/mpeg", None, ephemeral)

    assert url.startswith("/ephemeral/")
    assert ephemeral.get(url.rsplit("/", 1)[1]) == (b"abc", "audio/mpeg")


def test_resolve_media_path_stays_inside_sounds_dir(sounds_dir: Path, tmp_path: Path) -> None:
    secret = tmp_path / "secret.txt"
    secret.write_text("TOP SECRET")
    (sounds_dir / "escape").symlink_to(tmp_path)

    for name in (str(secret), "/etc/passwd", "\\etc\\passwd", "escape/secret.txt"):
        with pytest.raises(PathTraversalError):
            resolve_media_path(name)


def test_ephemeral_media_keeps_only_newest_blobs() -> None:
    ephemeral = EphemeralMedia(max_items=2)
    first, second, third = (ephemeral.put(bytes([i]), "audio/wav").rsplit("/", 1)[1] for i in range(3))

    assert len(ephemeral) == 2
    assert ephemeral.get(first) is None
    assert ephemeral.get(second) == (b"\x01", "audio/wav")
    assert ephemeral.get(third) == (b"\x02", "audio/wav")
