"""
Notifier Configuration.

An immutable snapshot of everything the notifier needs: credentials,
environment description, delivery mode, batching and scrubbing rules.
Scrub fields are compiled into rules once, when the configuration is
loaded, and never re-parsed per report.
"""

from __future__ import annotations

import re
import socket
from typing import Any, Callable, Dict, Literal, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .errors import ConfigurationError
from .scrub import ScrubRule, compile_rules

ACCESS_TOKEN_PATTERN = re.compile(r"^[0-9a-fA-F]{32}$")

DEFAULT_SCRUB_FIELDS = (
    "passwd",
    "password",
    "secret",
    "confirm_password",
    "password_confirmation",
    "auth_token",
    "csrf_token",
)

HandlerMode = Literal["blocking", "agent"]


class HandlerModes:
    BLOCKING = "blocking"
    AGENT = "agent"


class NotifierConfig(BaseModel):
    """
    Configuration for a Notifier.

    Attributes:
        access_token: Project access token (32 hex characters)
        environment: Environment name, e.g. "production"
        root: Root path of the application code on the server
        code_version: Deployed code version
        host: Server host name
        branch: Code branch; omitted from payloads when empty
        batched: Queue payloads and send them in batches
        batch_size: Number of queued payloads that triggers a flush
        handler: "blocking" (HTTP) or "agent" (relay file)
        base_api_url: Collector API root used by the HTTP sender
        timeout: HTTP timeout in seconds, applied by the HTTP sender
        agent_log_location: Directory the relay file is written to
        scrub_fields: Field names or "/pattern/flags" strings to redact
        capture_error_backtraces: Capture a full stack for runtime errors
        person: Static person data ({id, username, email})
        person_fn: Zero-argument callable returning person data
        framework: Framework name reported with each payload
        notifier_name: Name reported in data.notifier
    """
    model_config = ConfigDict(
        frozen=True,
        arbitrary_types_allowed=True,
        extra='ignore',
    )

    access_token: str
    environment: str = "production"
    root: str = ""
    code_version: Optional[str] = None
    host: str = Field(default_factory=socket.gethostname)
    branch: Optional[str] = None

    batched: bool = True
    batch_size: int = Field(default=50, ge=1)
    handler: HandlerMode = HandlerModes.BLOCKING

    base_api_url: str = "https://api.rollbar.com/api/1/"
    timeout: float = Field(default=3.0, gt=0)
    agent_log_location: str = "/var/tmp"

    scrub_fields: Tuple[Any, ...] = Field(default_factory=lambda: compile_rules(DEFAULT_SCRUB_FIELDS))
    capture_error_backtraces: bool = True

    person: Optional[Dict[str, Any]] = None
    person_fn: Optional[Callable[[], Optional[Mapping[str, Any]]]] = None

    framework: Optional[str] = None
    notifier_name: str = "magic-notifier"

    @field_validator("scrub_fields", mode="before")
    @classmethod
    def _compile_scrub_fields(cls, value: Any) -> Tuple[ScrubRule, ...]:
        if isinstance(value, (str, re.Pattern)):
            value = (value,)
        return compile_rules(value)

    @field_validator("handler", mode="before")
    @classmethod
    def _normalize_handler(cls, value: Any) -> Any:
        return value.strip().lower() if isinstance(value, str) else value

    @property
    def scrub_rules(self) -> Tuple[ScrubRule, ...]:
        """Scrub rules compiled from scrub_fields."""
        return self.scrub_fields

    @property
    def is_token_valid(self) -> bool:
        return bool(ACCESS_TOKEN_PATTERN.match(self.access_token or ""))

    def validate_token(self) -> None:
        """
        Check the access token format.

        Raises:
            ConfigurationError: If the token is not 32 hex characters
        """
        if not self.is_token_valid:
            raise ConfigurationError(
                "Invalid access token; reporting is disabled",
                details={"token_length": len(self.access_token or "")},
            )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "NotifierConfig":
        """
        Create a NotifierConfig from a plain mapping.

        A ``preset`` key selects one of PRESETS as the base; remaining keys
        override it. Unknown keys are ignored.

        Example:
            NotifierConfig.from_dict({
                "preset": "agent",
                "access_token": "ad865e76e7fb496fab096ac07b1dbabb",
                "environment": "staging",
            })

        Args:
            data: Configuration values

        Returns:
            NotifierConfig instance
        """
        values = dict(data or {})
        preset_name = values.pop("preset", None)
        base = get_preset(preset_name) if preset_name else {}
        return cls(**{**base, **values})

    def to_dict(self) -> Dict[str, Any]:
        """
        Serializable view of the configuration.

        ``person_fn`` is left out; compiled patterns are written back in
        their ``/pattern/flags`` form.
        """
        data = self.model_dump(exclude={"person_fn", "scrub_fields"})
        data["scrub_fields"] = [rule.to_source() for rule in self.scrub_fields]
        return data

    def with_overrides(self, **kwargs) -> "NotifierConfig":
        """Create a copy with some fields replaced."""
        values = {name: getattr(self, name) for name in type(self).model_fields}
        values.update(kwargs)
        return type(self)(**values)


PRESETS: Dict[str, Dict[str, Any]] = {
    "default": {},
    "agent": {"handler": HandlerModes.AGENT, "batched": True},
    "immediate": {"handler": HandlerModes.BLOCKING, "batched": False},
}


def get_preset(name: str) -> Dict[str, Any]:
    """
    Get preset overrides by name.

    Available presets:
    - default: Batched blocking HTTP delivery
    - agent: Batched delivery through the relay agent
    - immediate: Every payload sent over HTTP as soon as it is built

    Raises:
        ValueError: If preset name is unknown
    """
    if name not in PRESETS:
        raise ValueError(
            f"Unknown preset '{name}'. Available: {list(PRESETS.keys())}"
        )
    return dict(PRESETS[name])
