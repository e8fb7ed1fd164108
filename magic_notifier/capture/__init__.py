"""
Context Capture Module

Snapshots of request, person and server data plus backtrace and
exception chain extraction.
"""

from .backtrace import (
    capture_stack,
    default_predecessor,
    frames_from_traceback,
    trace_chain,
    trace_entry,
    walk_exception_chain,
)
from .capturer import ContextCapturer
from .person import normalize_person, resolve_person
from .request import (
    ContextVarRequestContext,
    NullRequestContext,
    RequestContextProvider,
    RequestState,
    StaticRequestContext,
    build_request_data,
    normalize_header_name,
)
from .server import build_server_data

__all__ = [
    # Backtrace
    "capture_stack",
    "default_predecessor",
    "frames_from_traceback",
    "trace_chain",
    "trace_entry",
    "walk_exception_chain",
    # Capturer
    "ContextCapturer",
    # Person
    "normalize_person",
    "resolve_person",
    # Request
    "ContextVarRequestContext",
    "NullRequestContext",
    "RequestContextProvider",
    "RequestState",
    "StaticRequestContext",
    "build_request_data",
    "normalize_header_name",
    # Server
    "build_server_data",
]
