"""
Request Context Capture.

The ambient request (query/form parameters, session, CGI-style environ)
is supplied by an injected RequestContextProvider rather than read from
process globals. Frameworks bind the current request to a provider; the
capturer turns it into the ``data.request`` block.
"""

from __future__ import annotations

import contextlib
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Mapping, Optional, Protocol, runtime_checkable
from urllib.parse import parse_qs

from magic_notifier.scrub import Scrubber

# CGI variables that become headers without the HTTP_ prefix
_UNPREFIXED_HEADERS = ("CONTENT_TYPE", "CONTENT_LENGTH")

_DEFAULT_PORTS = {"http": "80", "https": "443"}


@dataclass(frozen=True)
class RequestState:
    """
    Snapshot of one incoming request.

    Attributes:
        environ: CGI/WSGI style variables (HTTP_HOST, REQUEST_URI, ...)
        get: Query string parameters
        post: Form parameters
        session: Session data
    """
    environ: Mapping[str, Any] = field(default_factory=dict)
    get: Mapping[str, Any] = field(default_factory=dict)
    post: Mapping[str, Any] = field(default_factory=dict)
    session: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_wsgi(
        cls,
        environ: Mapping[str, Any],
        post: Optional[Mapping[str, Any]] = None,
        session: Optional[Mapping[str, Any]] = None,
    ) -> "RequestState":
        """
        Build a snapshot from a WSGI environ.

        Query parameters are parsed from QUERY_STRING; parameters given once
        map to a plain value, repeated ones to a list. Form data and session
        are not parsed from the environ and must be supplied.
        """
        query = parse_qs(environ.get("QUERY_STRING", "") or "", keep_blank_values=True)
        get = {k: v[0] if len(v) == 1 else v for k, v in query.items()}
        return cls(
            environ=dict(environ),
            get=get,
            post=dict(post or {}),
            session=dict(session or {}),
        )


@runtime_checkable
class RequestContextProvider(Protocol):
    """Source of the current request, or None outside a request."""

    def current_request(self) -> Optional[RequestState]:
        ...


class NullRequestContext:
    """Provider for processes that never serve requests."""

    def current_request(self) -> Optional[RequestState]:
        return None


class StaticRequestContext:
    """Provider that always returns the same request."""

    def __init__(self, state: Optional[RequestState] = None):
        self._state = state

    def current_request(self) -> Optional[RequestState]:
        return self._state


_current_request: ContextVar[Optional[RequestState]] = ContextVar(
    "magic_notifier_current_request", default=None
)


class ContextVarRequestContext:
    """
    Provider backed by a context variable.

    Request handlers bind the request for the duration of their work:

        provider = ContextVarRequestContext()
        with provider.bind(RequestState.from_wsgi(environ)):
            handle(environ)
    """

    def __init__(self, var: ContextVar[Optional[RequestState]] = _current_request):
        self._var = var

    def current_request(self) -> Optional[RequestState]:
        return self._var.get()

    @contextlib.contextmanager
    def bind(self, state: RequestState) -> Iterator[RequestState]:
        token = self._var.set(state)
        try:
            yield state
        finally:
            self._var.reset(token)


def normalize_header_name(name: str) -> str:
    """
    Canonical header name of a CGI variable.

    ``HTTP_AUTH_TOKEN`` becomes ``Auth-Token``; ``CONTENT_TYPE`` becomes
    ``Content-Type``.
    """
    if name.startswith("HTTP_"):
        name = name[5:]
    return "-".join(part.capitalize() for part in name.lower().split("_"))


def extract_headers(environ: Mapping[str, Any]) -> Dict[str, Any]:
    """Headers of a request, in environ order."""
    headers: Dict[str, Any] = {}
    for key, value in environ.items():
        if not isinstance(key, str):
            continue
        if key.startswith("HTTP_") or key in _UNPREFIXED_HEADERS:
            headers[normalize_header_name(key)] = value
    return headers


def request_url(environ: Mapping[str, Any]) -> Optional[str]:
    """
    Reconstruct ``scheme://host[:port]path`` of a request.

    Returns:
        The URL, or None when no host is known
    """
    scheme = environ.get("wsgi.url_scheme")
    if not scheme:
        https = str(environ.get("HTTPS", "")).lower()
        forwarded = str(environ.get("HTTP_X_FORWARDED_PROTO", "")).lower()
        scheme = "https" if https in ("on", "1") or forwarded == "https" else "http"

    host = environ.get("HTTP_HOST") or environ.get("SERVER_NAME")
    if not host:
        return None
    host = str(host)

    port = str(environ.get("SERVER_PORT", "") or "")
    if port and ":" not in host and port != _DEFAULT_PORTS.get(scheme):
        host = f"{host}:{port}"

    path = environ.get("REQUEST_URI")
    if not path:
        path = f"{environ.get('SCRIPT_NAME', '')}{environ.get('PATH_INFO', '')}"
        query = environ.get("QUERY_STRING")
        if query:
            path = f"{path}?{query}"
    return f"{scheme}://{host}{path or '/'}"


def client_ip(environ: Mapping[str, Any]) -> Optional[str]:
    """First forwarded address, else the real-ip header, else REMOTE_ADDR."""
    forwarded = environ.get("HTTP_X_FORWARDED_FOR")
    if forwarded:
        return str(forwarded).split(",")[0].strip()
    return environ.get("HTTP_X_REAL_IP") or environ.get("REMOTE_ADDR")


def build_request_data(state: RequestState, scrubber: Scrubber) -> Dict[str, Any]:
    """
    The ``data.request`` block of a payload.

    GET, POST, session and headers are scrubbed independently; empty
    sections are left out.
    """
    environ = state.environ
    request: Dict[str, Any] = {}

    url = request_url(environ)
    if url:
        request["url"] = url

    method = environ.get("REQUEST_METHOD")
    if method:
        request["method"] = method

    headers = extract_headers(environ)
    if headers:
        request["headers"] = scrubber.scrub(headers)

    if state.get:
        request["GET"] = scrubber.scrub(state.get)
    if state.post:
        request["POST"] = scrubber.scrub(state.post)
    if state.session:
        request["session"] = scrubber.scrub(state.session)

    ip = client_ip(environ)
    if ip:
        request["user_ip"] = ip

    return request
