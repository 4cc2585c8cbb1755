"""Built-in board used for first-run seeding and when the store is unreachable."""

from typing import List

from soundboard.models import Section, SectionColor, Sound


DEFAULT_SECTIONS = [
    {
        "id": "function",
        "title": "Function",
        "color": SectionColor.CYAN,
        "sounds": [
            ("keynote", "Keynote"),
            ("social-shake", "Social Shake"),
            ("good-brother", "Good Brother"),
            ("bayonet", "Bayonet"),
        ],
    },
    {
        "id": "special-effects",
        "title": "Special Effects",
        "color": SectionColor.ORANGE,
        "sounds": [
            ("applause", "Applause"),
            ("laughter", "Laughter"),
            ("kiss", "Kiss"),
            ("thanks", "Thanks"),
            ("welcome", "Welcome"),
            ("hit-him", "Hit Him"),
            ("ouch", "Ouch"),
            ("too-hard", "Too Hard"),
            ("follow", "Follow"),
        ],
    },
    {
        "id": "music-controls",
        "title": "Music Controls",
        "color": SectionColor.GREEN,
        "sounds": [
            ("play-pause", "Play/Pause"),
            ("next-track", "Next Track"),
            ("previous", "Previous"),
            ("volume-up", "Volume Up"),
        ],
    },
]


def default_board() -> List[Section]:
    """Fresh copy of the built-in board as in-memory sections."""
    return [
        Section(
            id=entry["id"],
            title=entry["title"],
            color=entry["color"],
            sounds=[
                Sound(id=sound_id, label=label)
                for sound_id, label in entry["sounds"]
            ],
        )
        for entry in DEFAULT_SECTIONS
    ]
