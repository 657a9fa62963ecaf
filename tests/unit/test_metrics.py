from prometheus_client import CONTENT_TYPE_LATEST

from matchscore.core import metrics


def _sample(name: str, labels: dict[str, str] | None = None) -> float:
    return metrics.registry.get_sample_value(name, labels or {}) or 0.0


def test_mark_observation_increments_counter() -> None:
    before = _sample("matchscore_observations_total", {"outcome": "accumulated"})

    metrics.mark_observation("accumulated")

    assert _sample("matchscore_observations_total", {"outcome": "accumulated"}) == before + 1


def test_mark_flush_observes_duration() -> None:
    before = _sample("matchscore_flush_duration_seconds_count")

    metrics.mark_flush("success", 0.25)
    metrics.mark_flush("skipped")

    assert _sample("matchscore_flush_duration_seconds_count") == before + 1


def test_cohorts_flushed_ignores_zero() -> None:
    before = _sample("matchscore_cohorts_flushed_total", {"outcome": "dropped"})

    metrics.mark_cohorts_flushed("dropped", 0)
    metrics.mark_cohorts_flushed("dropped", 3)

    assert _sample("matchscore_cohorts_flushed_total", {"outcome": "dropped"}) == before + 3


def test_pending_cohorts_gauge() -> None:
    metrics.set_pending_cohorts(7)
    assert _sample("matchscore_pending_cohorts") == 7


def test_render_latest() -> None:
    metrics.mark_score("scored")

    payload, content_type = metrics.render_latest()

    assert content_type == CONTENT_TYPE_LATEST
    assert b"matchscore_scores_total" in payload
    assert b"matchscore_observations_total" in payload
