"""Observability module for the Weather App.

OpenTelemetry spans exported through Phoenix, plus an in-memory log buffer.
"""

from .instrumentation import init_tracing, trace_tool, trace_span
from .log_buffer import InMemoryLogHandler, LogEntry, install_log_buffer

__all__ = [
    "init_tracing",
    "trace_tool",
    "trace_span",
    "InMemoryLogHandler",
    "LogEntry",
    "install_log_buffer",
]
