from __future__ import annotations

BATTLE_MARKERS: tuple[str, ...] = (
    " vs ",
    " vs. ",
    " v ",
    " v. ",
    " versus ",
    "battle",
    "botb",
    "band battle",
    "battle of the bands",
    "showdown",
    "face off",
    "faceoff",
)


def is_battle(text: str) -> bool:
    """True when the text uses head-to-head phrasing."""
    lowered = text.lower()
    return any(marker in lowered for marker in BATTLE_MARKERS)
