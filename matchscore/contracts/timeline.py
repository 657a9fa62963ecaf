"""
Match Timeline data contracts for Riot API Match-V5.
Only the parts of a frame the scoring engine reads are modelled.
"""

from typing import Any

from pydantic import Field, field_validator

from .common import Position, RiotContract


class ParticipantFrame(RiotContract):
    """Participant state at a specific frame."""

    participant_id: int = Field(..., ge=1, le=16)
    current_gold: int = Field(0)
    total_gold: int = Field(0)
    level: int = Field(1, ge=1, le=30)
    xp: int = Field(0)
    position: Position | None = Field(None)


class Frame(RiotContract):
    """A single frame in the match timeline."""

    timestamp: int = Field(..., description="Frame timestamp in milliseconds")
    participant_frames: dict[str, ParticipantFrame] = Field(
        default_factory=dict, description="Participant states indexed by participant ID string"
    )
    events: list[dict[str, Any]] = Field(
        default_factory=list, description="Events that occurred during this frame"
    )

    @field_validator("participant_frames", mode="before")
    @classmethod
    def convert_participant_frames(cls, v: Any) -> Any:
        """Fill in participant_id from the dict key when a frame omits it."""
        if isinstance(v, dict):
            result = {}
            for key, value in v.items():
                if isinstance(value, dict) and "participantId" not in value and "participant_id" not in value:
                    value = {**value, "participantId": int(key)}
                result[str(key)] = value
            return result
        return v


class TimelineParticipant(RiotContract):
    """Participant mapping in timeline."""

    participant_id: int = Field(..., ge=1, le=16)
    puuid: str = Field(..., description="Player's PUUID")


class TimelineInfo(RiotContract):
    """Timeline information containing frames and metadata."""

    frame_interval: int = Field(60000, description="Milliseconds between frames (usually 60000)")
    frames: list[Frame] = Field(default_factory=list, description="List of all frames in the match")
    participants: list[TimelineParticipant] = Field(
        default_factory=list, description="Participant ID to PUUID mapping"
    )


class TimelineMetadata(RiotContract):
    """Timeline metadata."""

    match_id: str = Field(..., description="Match ID")
    participants: list[str] = Field(default_factory=list, description="List of participant PUUIDs")


class MatchTimeline(RiotContract):
    """Complete match timeline from Riot API Match-V5."""

    metadata: TimelineMetadata
    info: TimelineInfo

    def iter_events(self, *event_types: str) -> list[dict[str, Any]]:
        """All events of the given types in timeline order.

        Events without a timestamp inherit the timestamp of their frame.
        """
        events = []
        for frame in self.info.frames:
            for event in frame.events:
                if event_types and event.get("type") not in event_types:
                    continue
                if "timestamp" not in event:
                    event = {**event, "timestamp": frame.timestamp}
                events.append(event)
        events.sort(key=lambda e: e.get("timestamp", 0))
        return events

    def max_current_gold(self) -> int:
        """Highest unspent gold any participant held in any frame."""
        highest = 0
        for frame in self.info.frames:
            for participant_frame in frame.participant_frames.values():
                highest = max(highest, participant_frame.current_gold)
        return highest
