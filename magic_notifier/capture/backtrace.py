"""
Backtrace and Exception Chain Capture.

Turns tracebacks and the live call stack into frame models, and flattens
an exception together with its predecessors into trace chain entries.
"""

from __future__ import annotations

import os
import traceback
from types import TracebackType
from typing import Any, Callable, Dict, Iterable, List, Optional

from magic_notifier.models import ModelExceptionInfo, ModelFrame, ModelTraceChainEntry

# Frames from inside this package are dropped from captured stacks.
_PACKAGE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__))) + os.sep

Predecessor = Callable[[BaseException], Optional[BaseException]]


def _to_frames(summaries: Iterable[traceback.FrameSummary]) -> List[ModelFrame]:
    return [
        ModelFrame(
            filename=summary.filename,
            lineno=summary.lineno,
            method=summary.name,
            code=summary.line or None,
        )
        for summary in summaries
    ]


def frames_from_traceback(tb: Optional[TracebackType]) -> List[ModelFrame]:
    """
    Extract frames from a traceback, oldest call first.

    An exception that was constructed but never raised has no traceback
    and yields no frames.
    """
    if tb is None:
        return []
    return _to_frames(traceback.extract_tb(tb))


def capture_stack(skip_internal: bool = True) -> List[ModelFrame]:
    """
    Capture the current call stack, oldest call first.

    Args:
        skip_internal: Drop frames that belong to this package

    Returns:
        Frames of the caller's stack
    """
    summaries = traceback.extract_stack()
    if skip_internal:
        summaries = [
            s for s in summaries
            if not os.path.abspath(s.filename).startswith(_PACKAGE_DIR)
        ]
    return _to_frames(summaries)


def default_predecessor(exc: BaseException) -> Optional[BaseException]:
    """
    Exception this one was caused by.

    The explicit cause wins; the implicit context is used unless it was
    suppressed with ``raise ... from None``.
    """
    if exc.__cause__ is not None:
        return exc.__cause__
    if exc.__suppress_context__:
        return None
    return exc.__context__


def walk_exception_chain(
    exc: BaseException,
    predecessor: Predecessor = default_predecessor,
) -> List[BaseException]:
    """
    Flatten an exception and its predecessors, outermost first.

    The walk stops when there is no predecessor, or when a predecessor was
    already visited, so a self-referential or cyclic link ends the chain.

    Args:
        exc: The reported exception
        predecessor: Function returning the exception's predecessor

    Returns:
        [exc, cause_of_exc, cause_of_cause, ...]
    """
    chain: List[BaseException] = []
    seen = set()
    current: Optional[BaseException] = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        chain.append(current)
        current = predecessor(current)
    return chain


def exception_class_name(exc: BaseException) -> str:
    return type(exc).__name__


def exception_message(exc: BaseException) -> str:
    try:
        return str(exc)
    except Exception:
        return repr(exc)


def trace_entry(
    exc: BaseException,
    extra: Optional[Dict[str, Any]] = None,
) -> ModelTraceChainEntry:
    """Build the trace entry of a single exception."""
    return ModelTraceChainEntry(
        exception=ModelExceptionInfo(
            class_name=exception_class_name(exc),
            message=exception_message(exc),
        ),
        frames=frames_from_traceback(exc.__traceback__),
        extra=dict(extra) if extra is not None else None,
    )


def trace_chain(
    exc: BaseException,
    extra: Optional[Dict[str, Any]] = None,
    predecessor: Predecessor = default_predecessor,
) -> List[ModelTraceChainEntry]:
    """
    Trace entries for an exception and all its predecessors.

    Extra data is attached to the outermost entry only.
    """
    chain = walk_exception_chain(exc, predecessor)
    return [
        trace_entry(item, extra if index == 0 else None)
        for index, item in enumerate(chain)
    ]
