import pytest

from soundboard.models import Actor
from soundboard.services.filters import ALL, filter_sections, parse_actors, parse_country


def _ids(sections):
    return [[s.id for s in section.sounds] for section in sections]


def test_no_filters_keeps_everything(sample_sections) -> None:
    assert _ids(filter_sections(sample_sections)) == _ids(sample_sections)


def test_country_us_excludes_uk_sounds(sample_sections) -> None:
    result = filter_sections(sample_sections, "US", set(), False)
    assert _ids(result) == [["us-daisy", "bare"], ["nsfw-only"]]
    for section in result:
        for sound in section.sounds:
            assert sound.meta is None or sound.meta.country is None or sound.meta.country.value != "UK"


def test_actor_filter_requires_overlap(sample_sections) -> None:
    result = filter_sections(sample_sections, ALL, {Actor.DAISY}, False)
    assert _ids(result) == [["us-daisy"], ["uk-daisy-nick"]]


def test_actor_filter_accepts_any_of_several(sample_sections) -> None:
    result = filter_sections(sample_sections, ALL, {"Nick", "Vanessa"}, False)
    assert _ids(result) == [["uk-nick"], ["uk-daisy-nick"]]


def test_sfw_only_drops_nsfw(sample_sections) -> None:
    result = filter_sections(sample_sections, ALL, set(), True)
    assert _ids(result) == [["us-daisy", "bare"], ["uk-daisy-nick"]]


def test_sections_survive_when_emptied(sample_sections) -> None:
    result = filter_sections(sample_sections, ALL, {Actor.ELLYN}, False)
    assert [s.id for s in result] == ["s1", "s2"]
    assert _ids(result) == [[], []]


def test_filter_does_not_touch_input(sample_sections) -> None:
    before = _ids(sample_sections)
    filter_sections(sample_sections, "UK", {Actor.NICK}, True)
    assert _ids(sample_sections) == before


def test_parse_country() -> None:
    assert parse_country(None) == ALL
    assert parse_country("all") == ALL
    assert parse_country("uk") == "UK"
    with pytest.raises(ValueError):
        parse_country("FR")


def test_parse_actors() -> None:
    assert parse_actors("") == set()
    assert parse_actors("daisy, Nick,") == {Actor.DAISY, Actor.NICK}
    with pytest.raises(ValueError):
        parse_actors("Daisy,Bob")
