"""Filtered views of the board by country, featured actors and SFW flag."""

from typing import Iterable, List, Optional, Set

from soundboard.models import Actor, Country, Section, Sound

ALL = "ALL"


def parse_country(value: Optional[str]) -> str:
    """'all'/''/None -> ALL, otherwise a Country value. Raises ValueError."""
    if not value or value.upper() == ALL:
        return ALL
    return Country(value.upper()).value


def parse_actors(value: Optional[str]) -> Set[Actor]:
    """Comma separated actor names, case-insensitive. Raises ValueError."""
    if not value:
        return set()
    by_name = {actor.value.lower(): actor for actor in Actor}
    actors = set()
    for name in value.split(","):
        name = name.strip()
        if not name:
            continue
        if name.lower() not in by_name:
            raise ValueError(f"Unknown actor: {name}")
        actors.add(by_name[name.lower()])
    return actors


def sound_matches(sound: Sound, country: str, actors: Set[Actor], sfw_only: bool) -> bool:
    meta = sound.meta
    sound_country = meta.country if meta else None
    if country != ALL and sound_country is not None and sound_country.value != country:
        return False
    if sfw_only and meta is not None and meta.nsfw is True:
        return False
    featured = set(meta.actors or []) if meta else set()
    if actors and not featured & actors:
        return False
    return True


def filter_sections(
    sections: List[Section],
    country: str = ALL,
    actors: Iterable[Actor] = (),
    sfw_only: bool = False,
) -> List[Section]:
    """
    Keep the sounds that pass every filter, in their original order.

    Sections are always kept, even when nothing in them survives. The input
    sections are not modified.
    """
    actors = {Actor(a) for a in actors}
    return [
        section.model_copy(update={
            "sounds": [s for s in section.sounds if sound_matches(s, country, actors, sfw_only)]
        })
        for section in sections
    ]
