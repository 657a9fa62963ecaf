"""Match scoring entry points - pure domain functions with zero I/O.

Takes an already-fetched match, its (optional) timeline and already-loaded
cohort snapshots, and returns score breakdowns. Loading snapshots belongs
to the caller; nothing here touches the store.
"""

import logging
from collections.abc import Mapping

from matchscore.contracts.cohort import CohortSnapshot
from matchscore.contracts.items import ItemCatalog
from matchscore.contracts.participant import MatchSummary
from matchscore.contracts.scoring import ScoreBreakdown
from matchscore.contracts.timeline import MatchTimeline
from matchscore.core import metrics
from matchscore.core.extraction.observation import ObservationError, build_observation
from matchscore.core.observability import trace_scoring
from matchscore.core.scoring.composer import compose_score
from matchscore.core.scoring.kill_quality import analyze_participant_events
from matchscore.core.scoring.models import ScoringParameters

logger = logging.getLogger(__name__)


@trace_scoring
def score_participant(
    match: MatchSummary,
    participant_id: int,
    snapshot: CohortSnapshot,
    timeline: MatchTimeline | None = None,
    catalog: ItemCatalog | None = None,
    params: ScoringParameters | None = None,
) -> ScoreBreakdown | None:
    """Score one participant of a finished match.

    Returns:
        The breakdown, or None when the match is not scorable (remake or
        zero duration).

    Raises:
        ObservationError: If ``participant_id`` is not part of ``match``.
    """
    params = params or ScoringParameters.from_settings()
    participant = match.get_participant(participant_id)
    if participant is None:
        raise ObservationError(f"participant {participant_id} is not part of {match.match_id}")

    observation = build_observation(match, participant, timeline, catalog)
    if observation.cohort != snapshot.key:
        logger.warning(
            f"Scoring {match.match_id}/{participant_id} against cohort "
            f"{snapshot.key.storage_key}, observation belongs to {observation.cohort.storage_key}"
        )

    quality = analyze_participant_events(timeline, participant_id, participant.team_id, params)
    breakdown = compose_score(observation, snapshot, kill_death_quality=quality, params=params)
    metrics.mark_score("scored" if breakdown is not None else "omitted")
    return breakdown


@trace_scoring
def analyze_full_match(
    match: MatchSummary,
    snapshots: Mapping[str, CohortSnapshot],
    timeline: MatchTimeline | None = None,
    catalog: ItemCatalog | None = None,
    params: ScoringParameters | None = None,
) -> list[ScoreBreakdown]:
    """Score every participant whose cohort snapshot is available.

    Args:
        match: The finished match
        snapshots: Cohort snapshots keyed by ``CohortKey.storage_key``
        timeline: Match timeline, enables timeline-derived categories
        catalog: Item catalog for completed-item checks
        params: Tuning constants, read from settings when omitted

    Returns:
        Breakdowns sorted by final score, best first. Participants without
        a snapshot are skipped.
    """
    params = params or ScoringParameters.from_settings()
    breakdowns = []
    for participant in match.participants:
        observation = build_observation(match, participant, timeline, catalog)
        snapshot = snapshots.get(observation.cohort.storage_key)
        if snapshot is None:
            logger.info(f"No cohort snapshot for {observation.cohort.storage_key}, skipping")
            metrics.mark_score("omitted")
            continue
        quality = analyze_participant_events(
            timeline, participant.participant_id, participant.team_id, params
        )
        breakdown = compose_score(observation, snapshot, kill_death_quality=quality, params=params)
        metrics.mark_score("scored" if breakdown is not None else "omitted")
        if breakdown is not None:
            breakdowns.append(breakdown)

    breakdowns.sort(key=lambda b: b.final_score, reverse=True)
    return breakdowns
