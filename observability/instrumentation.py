"""OpenTelemetry instrumentation for Phoenix tracing.

This module provides functions to initialize Phoenix tracing
for the weather app, with decorators for service calls.
"""

import functools
import inspect
import json
import logging
import os
from typing import Any, Callable, TypeVar

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

# Type variable for preserving function signatures
F = TypeVar("F", bound=Callable[..., Any])

logger = logging.getLogger(__name__)

# Global tracer instance
_tracer: trace.Tracer | None = None


def get_tracer() -> trace.Tracer:
    """Get the global tracer instance."""
    global _tracer
    if _tracer is None:
        _tracer = trace.get_tracer("weather-app")
    return _tracer


def init_tracing(
    project_name: str = "weather-app",
    endpoint: str | None = None,
) -> None:
    """Initialize Phoenix tracing.

    Call this function at the start of the application to export the
    spans created by ``trace_tool`` and ``trace_span``.

    Args:
        project_name: Name of the project in Phoenix dashboard.
        endpoint: Phoenix collector endpoint. Defaults to local Phoenix server.
    """
    from phoenix.otel import register

    # Use environment variable or default to local Phoenix
    collector_endpoint = endpoint or os.getenv(
        "PHOENIX_COLLECTOR_ENDPOINT",
        "http://localhost:6006/v1/traces"
    )

    tracer_provider = register(
        project_name=project_name,
        endpoint=collector_endpoint,
    )

    global _tracer
    _tracer = trace.get_tracer("weather-app", tracer_provider=tracer_provider)

    logger.info(f"Phoenix tracing initialized for project: {project_name}")
    logger.info(f"Sending traces to: {collector_endpoint}")


def _serialize_value(value: Any) -> str:
    """Serialize a value to string for span attributes."""
    try:
        if isinstance(value, (dict, list)):
            return json.dumps(value, ensure_ascii=False, default=str)
        return str(value)
    except Exception:
        return repr(value)


def _set_input(span: trace.Span, args: tuple, kwargs: dict) -> None:
    if args:
        span.set_attribute("input.args", _serialize_value(args))
    if kwargs:
        span.set_attribute("input.kwargs", _serialize_value(kwargs))


def _set_error(span: trace.Span, error: Exception) -> None:
    span.set_status(Status(StatusCode.ERROR, str(error)))
    span.set_attribute("error.type", type(error).__name__)
    span.set_attribute("error.message", str(error))


def trace_tool(
    name: str | None = None,
    capture_input: bool = True,
    capture_output: bool = True,
) -> Callable[[F], F]:
    """Decorator to trace a service call with input/output capture.

    Args:
        name: Custom span name. Defaults to function name.
        capture_input: Whether to capture input arguments. Defaults to True.
        capture_output: Whether to capture return value. Defaults to True.

    Returns:
        Decorated function with tracing.

    Example:
        @trace_tool(name="weather_api.fetch_by_city")
        async def fetch_by_city(self, name: str) -> NormalizedWeatherRecord:
            ...
    """
    def decorator(func: F) -> F:
        span_name = name or f"tool.{func.__name__}"

        @functools.wraps(func)
        def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
            with get_tracer().start_as_current_span(span_name) as span:
                span.set_attribute("tool.name", func.__name__)
                span.set_attribute("tool.type", "sync")
                if capture_input:
                    _set_input(span, args, kwargs)
                try:
                    result = func(*args, **kwargs)
                except Exception as e:
                    _set_error(span, e)
                    raise
                if capture_output and result is not None:
                    span.set_attribute("output.result", _serialize_value(result))
                span.set_status(Status(StatusCode.OK))
                return result

        @functools.wraps(func)
        async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
            with get_tracer().start_as_current_span(span_name) as span:
                span.set_attribute("tool.name", func.__name__)
                span.set_attribute("tool.type", "async")
                if capture_input:
                    _set_input(span, args, kwargs)
                try:
                    result = await func(*args, **kwargs)
                except Exception as e:
                    _set_error(span, e)
                    raise
                if capture_output and result is not None:
                    span.set_attribute("output.result", _serialize_value(result))
                span.set_status(Status(StatusCode.OK))
                return result

        if inspect.iscoroutinefunction(func):
            return async_wrapper  # type: ignore
        return sync_wrapper  # type: ignore

    return decorator


def trace_span(name: str) -> Callable[[F], F]:
    """Simple decorator to create a named span around a function.

    Use this for coordinator steps that aren't service calls.

    Args:
        name: Span name.

    Returns:
        Decorated function with tracing.
    """
    def decorator(func: F) -> F:
        @functools.wraps(func)
        def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
            with get_tracer().start_as_current_span(name) as span:
                span.set_attribute("function.name", func.__name__)
                try:
                    result = func(*args, **kwargs)
                except Exception as e:
                    span.set_status(Status(StatusCode.ERROR, str(e)))
                    raise
                span.set_status(Status(StatusCode.OK))
                return result

        @functools.wraps(func)
        async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
            with get_tracer().start_as_current_span(name) as span:
                span.set_attribute("function.name", func.__name__)
                try:
                    result = await func(*args, **kwargs)
                except Exception as e:
                    span.set_status(Status(StatusCode.ERROR, str(e)))
                    raise
                span.set_status(Status(StatusCode.OK))
                return result

        if inspect.iscoroutinefunction(func):
            return async_wrapper  # type: ignore
        return sync_wrapper  # type: ignore

    return decorator
