"""Ability level-up extraction."""

from __future__ import annotations

from matchscore.contracts.timeline import MatchTimeline

SKILL_SLOTS = {1: "Q", 2: "W", 3: "E", 4: "R"}
_BASIC_ABILITIES = ("q", "w", "e")
_MAX_RANK = 5


def extract_ability_order(timeline: MatchTimeline | None, participant_id: int) -> str | None:
    """Space separated level-up order, e.g. ``"Q W E Q Q R"``.

    Only ``NORMAL`` level-ups count; ``EVOLVE`` (Kha'Zix, Viktor...) does not
    spend a skill point.
    """
    if timeline is None:
        return None

    order = [
        SKILL_SLOTS[event["skillSlot"]]
        for event in timeline.iter_events("SKILL_LEVEL_UP")
        if event.get("participantId") == participant_id
        and event.get("levelUpType") == "NORMAL"
        and event.get("skillSlot") in SKILL_SLOTS
    ]
    return " ".join(order) or None


def skill_order_abbreviation(ability_order: str | None) -> str | None:
    """Max order of the basic abilities, e.g. ``"qwe"`` for Q > W > E.

    A skill counts as maxed at its fifth point. With two skills maxed the
    third is implied; with fewer there is no meaningful order.
    """
    if not ability_order:
        return None

    counts = {"Q": 0, "W": 0, "E": 0}
    maxed: list[str] = []
    for ability in ability_order.split():
        if ability not in counts:
            continue
        counts[ability] += 1
        if counts[ability] == _MAX_RANK:
            maxed.append(ability.lower())

    if len(maxed) < 2:
        return None
    if len(maxed) == 2:
        maxed.extend(a for a in _BASIC_ABILITIES if a not in maxed)
    return "".join(maxed)
