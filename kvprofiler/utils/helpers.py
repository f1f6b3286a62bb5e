# kvprofiler/utils/helpers.py - Helper functions
"""
General utility and helper functions.
"""

from typing import Any, Iterable, Tuple
import traceback


def format_duration(seconds: float) -> str:
    """
    Format a duration in seconds to a human-readable string.

    Args:
        seconds: Duration in seconds

    Returns:
        Formatted string (e.g., "1.5ms")
    """
    if seconds < 0.000001:
        return f"{seconds * 1_000_000_000:.0f}ns"
    elif seconds < 0.001:
        return f"{seconds * 1_000_000:.1f}us"
    elif seconds < 1.0:
        return f"{seconds * 1000:.1f}ms"
    else:
        return f"{seconds:.1f}s"


def join_lines(values: Iterable[Any]) -> str:
    """
    Join values one per line, as shown in operation tables.

    Args:
        values: Values to join (None is treated as empty)

    Returns:
        Newline-joined string
    """
    if not values:
        return ""
    return "\n".join(str(value) for value in values)


def root_cause(exc: BaseException) -> BaseException:
    """
    Follow the cause/context chain of an exception to its innermost error.

    Args:
        exc: Exception to inspect

    Returns:
        The innermost exception (``exc`` itself when it wraps nothing)
    """
    seen = {id(exc)}
    current = exc

    while True:
        inner = current.__cause__
        if inner is None and not current.__suppress_context__:
            inner = current.__context__
        if inner is None or id(inner) in seen:
            return current
        seen.add(id(inner))
        current = inner


def _exception_message(exc: BaseException) -> str:
    return str(exc) or type(exc).__name__


def describe_fault(fault: Any) -> Tuple[str, str]:
    """
    Render a fault as a (name, stack) pair for error tables.

    Exceptions that wrap a different root cause are named
    "<outer message>: <root message>". Pre-rendered fault records
    (anything with ``message`` and ``stack`` attributes) are returned as-is.

    Args:
        fault: Exception or fault record

    Returns:
        Tuple of (display name, stack text)
    """
    if not isinstance(fault, BaseException):
        if hasattr(fault, 'message') and hasattr(fault, 'stack'):
            return fault.message, fault.stack
        return str(fault), ""

    base = root_cause(fault)
    if base is fault:
        name = _exception_message(base)
    else:
        name = f"{_exception_message(fault)}: {_exception_message(base)}"

    stack = ""
    if base.__traceback__ is not None:
        stack = "".join(traceback.format_tb(base.__traceback__))

    return name, stack
