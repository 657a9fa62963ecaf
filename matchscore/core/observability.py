"""Observability helpers for the scoring engine.

Configures structlog once and provides ``trace_wrapper``, a decorator that
binds an execution id, measures duration and logs failures for both sync
scoring calls and async store/flush calls.
"""

import asyncio
import functools
import json
import sys
import time
import traceback
from collections.abc import Callable
from typing import Any, TypeVar, cast

import structlog
from pydantic import BaseModel
from structlog.contextvars import bind_contextvars, unbind_contextvars

structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.CallsiteParameterAdder(
            parameters=[
                structlog.processors.CallsiteParameter.FILENAME,
                structlog.processors.CallsiteParameter.FUNC_NAME,
                structlog.processors.CallsiteParameter.LINENO,
            ],
        ),
        structlog.processors.dict_tracebacks,
        structlog.dev.ConsoleRenderer() if sys.stderr.isatty() else structlog.processors.JSONRenderer(),  # type: ignore[list-item]
    ],
    context_class=dict,
    wrapper_class=structlog.stdlib.BoundLogger,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger()

F = TypeVar("F", bound=Callable[..., Any])


def _serialize_value(value: Any, max_length: int = 500) -> Any:
    """Safely serialize a value for logging."""
    try:
        if isinstance(value, BaseModel):
            dumped = json.dumps(value.model_dump(mode="json"), default=str)
        else:
            dumped = json.dumps(value, default=str)
        if len(dumped) > max_length:
            return dumped[:max_length] + "..."
        return json.loads(dumped)
    except (TypeError, ValueError):
        str_repr = str(value)
        if len(str_repr) > max_length:
            return str_repr[:max_length] + "..."
        return str_repr


def _execution_id(func: Callable[..., Any]) -> str:
    return f"{func.__module__}.{func.__name__}_{int(time.time() * 1000000)}"


def trace_wrapper(
    *,
    capture_args: bool = False,
    capture_result: bool = False,
    max_arg_length: int = 500,
    log_level: str = "DEBUG",
    add_metadata: dict[str, Any] | None = None,
) -> Callable[[F], F]:
    """Decorator for function tracing.

    Logs entry and exit at ``log_level`` with the measured duration, and
    logs failures at ERROR with the traceback before re-raising.

    Args:
        capture_args: Include serialized arguments in the entry log
        capture_result: Include the serialized return value in the exit log
        max_arg_length: Truncation length for serialized values
        log_level: Log level for successful executions
        add_metadata: Extra key/values attached to every log line

    Returns:
        Decorated function
    """
    metadata = add_metadata or {}

    def decorator(func: F) -> F:
        function_name = f"{func.__module__}.{func.__name__}"
        level = log_level.lower()

        def _entry(execution_id: str, args: tuple[Any, ...], kwargs: dict[str, Any]) -> dict[str, Any]:
            fields: dict[str, Any] = {"execution_id": execution_id, **metadata}
            if capture_args:
                fields["args"] = [_serialize_value(a, max_arg_length) for a in args]
                fields["kwargs"] = {k: _serialize_value(v, max_arg_length) for k, v in kwargs.items()}
            return fields

        def _failure(execution_id: str, started: float, exc: Exception) -> None:
            logger.error(
                f"Error in function: {function_name}",
                execution_id=execution_id,
                duration_ms=(time.perf_counter() - started) * 1000,
                error_type=type(exc).__name__,
                error_message=str(exc),
                traceback=traceback.format_exc(),
                **metadata,
            )

        def _success(execution_id: str, started: float, result: Any) -> None:
            getattr(logger, level)(
                f"Successfully executed: {function_name}",
                execution_id=execution_id,
                duration_ms=(time.perf_counter() - started) * 1000,
                result=_serialize_value(result, max_arg_length) if capture_result else None,
                **metadata,
            )

        @functools.wraps(func)
        async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
            execution_id = _execution_id(func)
            bind_contextvars(execution_id=execution_id)
            getattr(logger, level)(f"Executing async function: {function_name}", **_entry(execution_id, args, kwargs))
            started = time.perf_counter()
            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                _failure(execution_id, started, e)
                raise
            finally:
                unbind_contextvars("execution_id")
            _success(execution_id, started, result)
            return result

        @functools.wraps(func)
        def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
            execution_id = _execution_id(func)
            bind_contextvars(execution_id=execution_id)
            getattr(logger, level)(f"Executing function: {function_name}", **_entry(execution_id, args, kwargs))
            started = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                _failure(execution_id, started, e)
                raise
            finally:
                unbind_contextvars("execution_id")
            _success(execution_id, started, result)
            return result

        if asyncio.iscoroutinefunction(func):
            return cast(F, async_wrapper)
        return cast(F, sync_wrapper)

    return decorator


def trace_scoring(func: F) -> F:
    """Decorator for the synchronous scoring path."""
    return trace_wrapper(log_level="DEBUG", add_metadata={"layer": "scoring"})(func)


def trace_adapter(func: F) -> F:
    """Decorator for store adapter calls."""
    return trace_wrapper(capture_args=True, log_level="INFO", add_metadata={"layer": "adapter"})(func)
