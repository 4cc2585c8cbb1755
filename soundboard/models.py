"""Data models for the sound effects board."""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_serializer
from pydantic.alias_generators import to_camel


# Enums
class SectionColor(str, Enum):
    CYAN = "cyan"
    ORANGE = "orange"
    GREEN = "green"
    PURPLE = "purple"


SECTION_COLORS: List[SectionColor] = list(SectionColor)


class Country(str, Enum):
    US = "US"
    UK = "UK"


class Actor(str, Enum):
    ELLYN = "Ellyn"
    DAISY = "Daisy"
    NICK = "Nick"
    VANESSA = "Vanessa"
    CAST = "Cast"


class _CamelModel(BaseModel):
    """Serializes with the browser's camelCase keys, accepts either form."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Board entities
class SoundMeta(_CamelModel):
    """Optional descriptive metadata shown in the now-playing panel."""
    country: Optional[Country] = None
    show_url: Optional[str] = None
    episode_url: Optional[str] = None
    season_episode: Optional[str] = None
    actors: Optional[List[Actor]] = None
    nsfw: Optional[bool] = None

    @model_serializer(mode="wrap")
    def _drop_empty(self, handler):
        # Every field is optional; unset ones are left out rather than sent as null.
        return {k: v for k, v in handler(self).items() if v is not None}

    def merged(self, patch: "SoundMeta") -> "SoundMeta":
        """Shallow merge: fields explicitly set on the patch replace ours."""
        update = patch.model_dump(exclude_unset=True)
        return self.model_copy(update=update)

    def to_row(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class Sound(_CamelModel):
    """A playable button."""
    id: str
    label: str
    audio_url: Optional[str] = None
    meta: Optional[SoundMeta] = None


class Section(_CamelModel):
    """A named, colored, ordered group of sounds."""
    id: str
    title: str
    color: SectionColor
    sounds: List[Sound] = Field(default_factory=list)


# API Request/Response Models
class SectionUpdate(BaseModel):
    title: str


class SoundUpdate(_CamelModel):
    """Any subset of label, audio URL and a partial meta patch."""
    label: Optional[str] = None
    audio_url: Optional[str] = None
    meta: Optional[SoundMeta] = None


class EditToggleRequest(BaseModel):
    password: Optional[str] = None


class EditModeState(_CamelModel):
    edit_mode: bool
    authorized: bool


class MediaItem(BaseModel):
    name: str
    url: str


class MediaListing(BaseModel):
    items: List[MediaItem]


class UploadResult(BaseModel):
    url: str
    name: str


class PanelSnapshot(_CamelModel):
    """What the now-playing panel is showing."""
    state: str
    section_id: Optional[str] = None
    sound_id: Optional[str] = None
    label: Optional[str] = None
    link_url: Optional[str] = None
    link_text: Optional[str] = None
    season_episode: Optional[str] = None
