import pytest
from structlog.contextvars import get_contextvars

from matchscore.core.observability import _serialize_value, trace_adapter, trace_scoring, trace_wrapper
from matchscore.contracts.cohort import CohortKey


def test_sync_wrapper_returns_result_and_preserves_metadata() -> None:
    @trace_scoring
    def _double(value: int) -> int:
        """Double it."""
        return value * 2

    assert _double(21) == 42
    assert _double.__name__ == "_double"
    assert _double.__doc__ == "Double it."
    assert "execution_id" not in get_contextvars()


def test_sync_wrapper_reraises_and_unbinds() -> None:
    @trace_wrapper(capture_args=True, log_level="INFO")
    def _boom() -> None:
        raise ValueError("bad cohort")

    with pytest.raises(ValueError, match="bad cohort"):
        _boom()
    assert "execution_id" not in get_contextvars()


@pytest.mark.asyncio
async def test_async_wrapper_binds_execution_id_during_call() -> None:
    seen: dict[str, object] = {}

    @trace_adapter
    async def _store(key: CohortKey) -> int:
        seen.update(get_contextvars())
        return 1

    assert await _store(CohortKey(champion_name="Annie", patch="25.3")) == 1
    assert str(seen["execution_id"]).startswith(f"{__name__}._store_")
    assert "execution_id" not in get_contextvars()


@pytest.mark.asyncio
async def test_async_wrapper_reraises() -> None:
    @trace_wrapper(capture_result=True)
    async def _fail() -> None:
        raise ConnectionError("redis down")

    with pytest.raises(ConnectionError, match="redis down"):
        await _fail()
    assert "execution_id" not in get_contextvars()


def test_serialize_value_handles_models_and_truncates() -> None:
    assert _serialize_value(CohortKey(champion_name="Annie", patch="25.3")) == {
        "champion_name": "Annie",
        "patch": "25.3",
    }
    truncated = _serialize_value("x" * 100, max_length=10)
    assert isinstance(truncated, str)
    assert truncated.endswith("...")
    assert _serialize_value(object()).startswith("<object object")
