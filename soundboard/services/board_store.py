"""
Board state: sections and their sounds, kept in memory and synced to the
remote store.

Every mutation is optimistic. The in-memory board changes first, then the
matching remote write is issued. A failed write is logged and the local
change stays as the source of truth: nothing is retried, rolled back or
reconciled later. Entities created while the store is failing get
``local-`` ids and live only in memory.

The board list is never mutated in place; each change swaps in a new list
with new ``Section``/``Sound`` objects for whatever changed, so a reader
holding ``board.sections`` never sees a half-applied edit.
"""

import asyncio
import logging
import time
from collections import defaultdict
from typing import Any, Callable, Dict, List, Optional, Set, Tuple

from soundboard.models import SECTION_COLORS, Section, SectionColor, Sound, SoundMeta
from soundboard.services import media_library
from soundboard.services.default_board import DEFAULT_SECTIONS, default_board
from soundboard.services.remote_store import RemoteStoreError, Row

logger = logging.getLogger(__name__)

NEW_SOUND_LABEL = "New Sound"
NEW_SECTION_TITLE = "New Section"
NEW_SOUND_META = SoundMeta(nsfw=True)
# Sorts a freshly added sound after everything seeded or auto-populated.
APPEND_POSITION = 9999


def _local_id(kind: str) -> str:
    return f"local-{kind}-{time.time_ns()}"


def pick_section_color(sections: List[Section]) -> SectionColor:
    """First color nobody uses yet, otherwise cycle by count."""
    used = {section.color for section in sections}
    for color in SECTION_COLORS:
        if color not in used:
            return color
    return SECTION_COLORS[len(sections) % len(SECTION_COLORS)]


def sound_from_row(row: Row) -> Sound:
    meta = row.get("meta")
    return Sound(
        id=str(row["id"]),
        label=row.get("label") or "",
        audio_url=row.get("audio_url"),
        meta=SoundMeta.model_validate(meta) if meta else None,
    )


def compose_sections(section_rows: List[Row], sound_rows: List[Row]) -> List[Section]:
    """Nest sounds under their section, ordered by position (stable)."""
    grouped: Dict[str, List[Row]] = defaultdict(list)
    for row in sound_rows:
        grouped[str(row.get("section_id"))].append(row)

    sections = []
    for row in section_rows:
        section_id = str(row["id"])
        ordered = sorted(grouped.get(section_id, []), key=lambda r: r.get("position") or 0)
        sections.append(Section(
            id=section_id,
            title=row.get("title") or "",
            color=row.get("color") or SectionColor.CYAN,
            sounds=[sound_from_row(r) for r in ordered],
        ))
    return sections


class BoardStore:
    """
    Canonical in-memory board plus its remote sync.

    One instance per running app; created at startup and closed at shutdown.
    ``store`` is any object with the ``RestStore`` surface.
    """

    def __init__(self, store, list_media: Callable[[], List[Dict[str, str]]] = None):
        self.store = store
        self.sections: List[Section] = []
        self.loaded_from_remote = False
        self._list_media = list_media or media_library.list_audio_files
        self._pending: Set[asyncio.Task] = set()

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def load_board(self) -> List[Section]:
        """Fetch (seeding or auto-populating if needed) and compose the board."""
        try:
            section_rows = await self.store.select("sections", order="created_at")
        except RemoteStoreError as e:
            logger.warning(f"Store unavailable, using built-in board: {e}")
            self.sections = default_board()
            self.loaded_from_remote = False
            return self.sections

        if not section_rows:
            logger.info("Empty store, seeding default board")
            try:
                section_rows = await self._seed_defaults()
            except RemoteStoreError as e:
                logger.warning(f"Seeding failed, using built-in board: {e}")
                self.sections = default_board()
                self.loaded_from_remote = False
                return self.sections

        sound_rows = await self._fetch_sounds()
        # Only an empty result that was actually read may be filled from media.
        if section_rows and sound_rows == []:
            if await self._populate_from_media(section_rows[0]):
                sound_rows = await self._fetch_sounds()

        self.sections = compose_sections(section_rows, sound_rows or [])
        self.loaded_from_remote = True
        logger.info(
            f"Loaded board: {len(self.sections)} sections, "
            f"{sum(len(s.sounds) for s in self.sections)} sounds"
        )
        return self.sections

    async def _fetch_sounds(self) -> Optional[List[Row]]:
        """Sounds ordered by position, or ``None`` when the read failed."""
        try:
            return await self.store.select("sounds", order="position")
        except RemoteStoreError as e:
            logger.error(f"Failed to fetch sounds: {e}")
            return None

    async def _insert_one(self, table: str, row: Row) -> Row:
        rows = await self.store.insert(table, row)
        if not rows:
            raise RemoteStoreError(f"insert into {table} returned no row")
        return rows[0]

    async def _seed_defaults(self) -> List[Row]:
        for entry in DEFAULT_SECTIONS:
            inserted = await self._insert_one(
                "sections", {"title": entry["title"], "color": entry["color"].value}
            )
            section_id = inserted["id"]
            await self.store.insert("sounds", [
                {"section_id": section_id, "label": label, "position": position}
                for position, (_, label) in enumerate(entry["sounds"])
            ])
        return await self.store.select("sections", order="created_at")

    async def _populate_from_media(self, section_row: Row) -> bool:
        """Turn the media directory listing into sounds of the first section."""
        items = self._list_media()
        if not items:
            return False
        rows = [
            {
                "section_id": section_row["id"],
                "label": media_library.label_from_filename(item["name"]),
                "audio_url": item["url"],
                "position": position,
            }
            for position, item in enumerate(items)
        ]
        try:
            await self.store.insert("sounds", rows)
        except RemoteStoreError as e:
            logger.error(f"Auto-populating sounds failed: {e}")
            return False
        logger.info(f"Auto-populated {len(rows)} sounds from media directory")
        return True

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get_section(self, section_id: str) -> Optional[Section]:
        return next((s for s in self.sections if s.id == section_id), None)

    def find_sound(self, sound_id: str) -> Optional[Tuple[Section, Sound]]:
        for section in self.sections:
            for sound in section.sounds:
                if sound.id == sound_id:
                    return section, sound
        return None

    # ------------------------------------------------------------------
    # Remote write plumbing
    # ------------------------------------------------------------------

    def _spawn(self, description: str, coro) -> asyncio.Task:
        """Issue a remote write without waiting on it; failures are logged."""
        async def run():
            try:
                await coro
            except RemoteStoreError as e:
                logger.error(f"{description} failed: {e}")

        task = asyncio.get_running_loop().create_task(run())
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def drain(self):
        """Wait for every in-flight remote write."""
        while self._pending:
            await asyncio.gather(*list(self._pending))

    async def close(self):
        await self.drain()
        await self.store.aclose()

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def _replace_section(self, section_id: str, change: Callable[[Section], Section]) -> bool:
        found = False
        updated = []
        for section in self.sections:
            if section.id == section_id:
                section = change(section)
                found = True
            updated.append(section)
        if found:
            self.sections = updated
        return found

    def _replace_sound(self, section_id: str, sound_id: str, change: Callable[[Sound], Sound]) -> Optional[Sound]:
        section = self.get_section(section_id)
        if section is None or not any(s.id == sound_id for s in section.sounds):
            logger.debug(f"No sound {sound_id} in section {section_id}")
            return None

        changed: List[Sound] = []

        def rebuild(sec: Section) -> Section:
            sounds = []
            for sound in sec.sounds:
                if sound.id == sound_id:
                    sound = change(sound)
                    changed.append(sound)
                sounds.append(sound)
            return sec.model_copy(update={"sounds": sounds})

        self._replace_section(section_id, rebuild)
        return changed[0]

    def set_section_title(self, section_id: str, title: str) -> bool:
        if not self._replace_section(section_id, lambda s: s.model_copy(update={"title": title})):
            logger.debug(f"No section {section_id}")
            return False
        self._spawn(
            f"Updating title of section {section_id}",
            self.store.update("sections", {"title": title}, id=section_id),
        )
        return True

    def set_sound_label(self, section_id: str, sound_id: str, label: str) -> bool:
        sound = self._replace_sound(section_id, sound_id, lambda s: s.model_copy(update={"label": label}))
        if sound is None:
            return False
        self._spawn(
            f"Updating label of sound {sound_id}",
            self.store.update("sounds", {"label": label}, id=sound_id),
        )
        return True

    def set_sound_audio(self, section_id: str, sound_id: str, url: str) -> bool:
        sound = self._replace_sound(section_id, sound_id, lambda s: s.model_copy(update={"audio_url": url}))
        if sound is None:
            return False
        self._spawn(
            f"Updating audio of sound {sound_id}",
            self.store.update("sounds", {"audio_url": url}, id=sound_id),
        )
        return True

    def set_sound_meta(self, section_id: str, sound_id: str, patch: SoundMeta) -> Optional[SoundMeta]:
        """Shallow-merge ``patch`` into the sound's meta; returns the merged meta."""
        sound = self._replace_sound(
            section_id,
            sound_id,
            lambda s: s.model_copy(update={"meta": (s.meta or SoundMeta()).merged(patch)}),
        )
        if sound is None:
            return None
        self._spawn(
            f"Updating meta of sound {sound_id}",
            self.store.update("sounds", {"meta": sound.meta.to_row()}, id=sound_id),
        )
        return sound.meta

    async def add_sound(self, section_id: str) -> Optional[Sound]:
        if self.get_section(section_id) is None:
            logger.debug(f"No section {section_id}")
            return None
        try:
            row = await self._insert_one("sounds", {
                "section_id": section_id,
                "label": NEW_SOUND_LABEL,
                "meta": NEW_SOUND_META.to_row(),
                "position": APPEND_POSITION,
            })
            sound = sound_from_row(row)
        except RemoteStoreError as e:
            logger.error(f"Adding sound to {section_id} failed, keeping it local only: {e}")
            sound = Sound(id=_local_id("sound"), label=NEW_SOUND_LABEL, meta=NEW_SOUND_META)

        self._replace_section(
            section_id, lambda s: s.model_copy(update={"sounds": [*s.sounds, sound]})
        )
        return sound

    async def add_section(self) -> Section:
        color = pick_section_color(self.sections)
        try:
            row = await self._insert_one("sections", {"title": NEW_SECTION_TITLE, "color": color.value})
            section = Section(id=str(row["id"]), title=row.get("title") or NEW_SECTION_TITLE, color=color)
        except RemoteStoreError as e:
            logger.error(f"Adding section failed, keeping it local only: {e}")
            section = Section(id=_local_id("section"), title=NEW_SECTION_TITLE, color=color)

        self.sections = [*self.sections, section]
        return section

    def remove_section(self, section_id: str) -> bool:
        remaining = [s for s in self.sections if s.id != section_id]
        if len(remaining) == len(self.sections):
            return False
        self.sections = remaining
        # Sounds go with it through the store's cascade.
        self._spawn(f"Deleting section {section_id}", self.store.delete("sections", id=section_id))
        return True

    def snapshot(self) -> List[Dict[str, Any]]:
        return [section.model_dump(mode="json", by_alias=True) for section in self.sections]
