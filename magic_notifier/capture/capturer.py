"""
Context Capturer.

Snapshots the ambient request, person and server data at report time.
Every collaborator is injected so tests can substitute any of them.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Mapping, Optional, Sequence

from magic_notifier.scrub import ScrubRule, Scrubber

from .person import PersonProvider, resolve_person
from .request import NullRequestContext, RequestContextProvider, build_request_data
from .server import build_server_data, process_argv


class ContextCapturer:
    """
    Capture request, person and server context for a payload.

    Example:
        capturer = ContextCapturer(
            request_provider=StaticRequestContext(state),
            scrub_rules=config.scrub_rules,
            host="web-1",
            root="/srv/app",
        )
        capturer.capture_request()  # {"url": ..., "POST": {...}}
    """

    def __init__(
        self,
        request_provider: Optional[RequestContextProvider] = None,
        scrub_rules: Sequence[ScrubRule] = (),
        host: str = "",
        root: str = "",
        code_version: Optional[str] = None,
        branch: Optional[str] = None,
        person: Optional[Mapping[str, Any]] = None,
        person_provider: Optional[PersonProvider] = None,
        argv_provider: Callable[[], Sequence[str]] = process_argv,
    ):
        self._request_provider = request_provider or NullRequestContext()
        self._scrubber = Scrubber(scrub_rules)
        self._host = host
        self._root = root
        self._code_version = code_version
        self._branch = branch
        self._person = dict(person) if person else None
        self._person_provider = person_provider
        self._argv_provider = argv_provider

    @property
    def scrubber(self) -> Scrubber:
        return self._scrubber

    def capture_request(self, scrub_rules: Optional[Sequence[ScrubRule]] = None) -> Optional[Dict[str, Any]]:
        """
        The scrubbed request block, or None outside a request.

        Args:
            scrub_rules: Rules to use instead of the configured ones
        """
        state = self._request_provider.current_request()
        if state is None:
            return None
        scrubber = self._scrubber if scrub_rules is None else Scrubber(scrub_rules)
        return build_request_data(state, scrubber)

    def capture_person(self) -> Optional[Dict[str, Any]]:
        """Person data; provider failures raise CaptureError."""
        return resolve_person(self._person, self._person_provider)

    def capture_server(self, in_request: bool = False) -> Dict[str, Any]:
        return build_server_data(
            host=self._host,
            root=self._root,
            code_version=self._code_version,
            branch=self._branch,
            argv=None if in_request else self._argv_provider(),
        )
