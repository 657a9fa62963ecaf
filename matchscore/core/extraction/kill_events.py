"""Champion kill extraction with positional and economic context."""

from __future__ import annotations

import logging

from matchscore.contracts.common import Position
from matchscore.contracts.scoring import KillEvent
from matchscore.contracts.timeline import MatchTimeline

logger = logging.getLogger(__name__)


def extract_kill_events(timeline: MatchTimeline | None) -> list[KillEvent]:
    """Every champion kill in the match, in time order.

    Gold and level come from the participant frames of the frame that holds
    the event. Executions (no killer) and kills without a victim are skipped.
    """
    if timeline is None:
        return []

    kills: list[KillEvent] = []
    for frame in timeline.info.frames:
        for event in frame.events:
            if event.get("type") != "CHAMPION_KILL":
                continue
            killer_id = event.get("killerId") or 0
            victim_id = event.get("victimId") or 0
            if not killer_id or not victim_id:
                continue

            raw_position = event.get("position") or {}
            victim_frame = frame.participant_frames.get(str(victim_id))
            killer_frame = frame.participant_frames.get(str(killer_id))
            kills.append(
                KillEvent(
                    timestamp=int(event.get("timestamp", frame.timestamp)),
                    killer_id=int(killer_id),
                    victim_id=int(victim_id),
                    assisting_ids=tuple(event.get("assistingParticipantIds") or ()),
                    position=Position(x=int(raw_position.get("x", 0)), y=int(raw_position.get("y", 0))),
                    killer_gold=max(0, killer_frame.current_gold) if killer_frame else 0,
                    victim_gold=max(0, victim_frame.current_gold) if victim_frame else 0,
                    killer_level=killer_frame.level if killer_frame else 1,
                    victim_level=victim_frame.level if victim_frame else 1,
                    bounty=int(event.get("bounty") or 0),
                    shutdown_bounty=int(event.get("shutdownBounty") or 0),
                )
            )

    kills.sort(key=lambda kill: kill.timestamp)
    logger.debug(f"Extracted {len(kills)} champion kills from {timeline.metadata.match_id}")
    return kills
