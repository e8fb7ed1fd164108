"""
Field Redaction ("scrubbing").

Redacts the values of sensitive keys anywhere inside nested mappings and
sequences. Rules are compiled once, when the configuration is loaded, into
either an exact (case-insensitive) name rule or a regular expression rule.

Example:
    rules = compile_rules(["password", "/token|secret/i"])
    scrub({"password": "hunter2", "auth": {"api_token": "abc"}}, rules)
    # {"password": "*******", "auth": {"api_token": "***"}}
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional, Pattern, Sequence, Tuple, Union

REDACTION_CHAR = "*"

# /body/flags, e.g. "/token|password/i"
_DELIMITED_PATTERN = re.compile(r"^/(?P<body>.*)/(?P<flags>[imsx]*)$", re.DOTALL)

_FLAG_MAP = {
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
    "x": re.VERBOSE,
}


@dataclass(frozen=True)
class ExactRule:
    """Match a key by name, ignoring case."""
    name: str

    def matches(self, key: str) -> bool:
        return key.lower() == self.name.lower()

    def to_source(self) -> str:
        return self.name


@dataclass(frozen=True)
class PatternRule:
    """Match a key when the regular expression finds it."""
    pattern: Pattern[str]

    def matches(self, key: str) -> bool:
        return self.pattern.search(key) is not None

    def to_source(self) -> str:
        flags = "".join(f for f, bit in _FLAG_MAP.items() if self.pattern.flags & bit)
        return f"/{self.pattern.pattern}/{flags}"


ScrubRule = Union[ExactRule, PatternRule]


def compile_rule(field: Union[str, Pattern[str], ExactRule, PatternRule]) -> ScrubRule:
    """
    Compile one scrub field into a rule.

    Strings written as ``/pattern/flags`` become pattern rules, any other
    string is an exact field name. Compiled patterns are used as they are.

    Args:
        field: Field name, delimited pattern string, compiled pattern or rule

    Returns:
        The compiled rule

    Raises:
        ValueError: If a delimited pattern is not a valid regular expression
        TypeError: If the field is of an unsupported type
    """
    if isinstance(field, (ExactRule, PatternRule)):
        return field
    if isinstance(field, re.Pattern):
        return PatternRule(field)
    if not isinstance(field, str):
        raise TypeError(f"Unsupported scrub field {field!r}")

    match = _DELIMITED_PATTERN.match(field)
    if match and match.group("body"):
        flags = 0
        for flag in match.group("flags"):
            flags |= _FLAG_MAP[flag]
        try:
            return PatternRule(re.compile(match.group("body"), flags))
        except re.error as e:
            raise ValueError(f"Invalid scrub pattern {field!r}: {e}") from e
    return ExactRule(field)


def compile_rules(fields: Optional[Iterable[Union[str, Pattern[str], ScrubRule]]]) -> Tuple[ScrubRule, ...]:
    """Compile a sequence of scrub fields, keeping their order."""
    if not fields:
        return ()
    return tuple(compile_rule(f) for f in fields)


def _is_container(value: Any) -> bool:
    return isinstance(value, (Mapping, list, tuple))


def _mask(value: Any) -> str:
    """Mask of the same textual length as the value."""
    if value is None:
        return ""
    if isinstance(value, bytes):
        return REDACTION_CHAR * len(value)
    return REDACTION_CHAR * len(str(value))


class Scrubber:
    """
    Redact sensitive keys from arbitrarily nested structures.

    A matched scalar is replaced by a run of ``*`` as long as its text; a
    matched mapping or sequence collapses to a single ``*``. Keys of
    unmatched containers are checked at every level. Input is never
    mutated. Inputs must be acyclic.
    """

    def __init__(self, rules: Sequence[ScrubRule] = ()):
        self._rules: Tuple[ScrubRule, ...] = tuple(rules)

    @property
    def rules(self) -> Tuple[ScrubRule, ...]:
        return self._rules

    def is_sensitive(self, key: Any) -> bool:
        """Check whether a key matches any rule."""
        text = key if isinstance(key, str) else str(key)
        return any(rule.matches(text) for rule in self._rules)

    def scrub(self, value: Any) -> Any:
        """
        Return a redacted copy of value.

        Args:
            value: Mapping, sequence or scalar

        Returns:
            A new structure with sensitive values masked
        """
        if not self._rules:
            return self._copy(value)
        return self._scrub_value(value)

    def _scrub_value(self, value: Any) -> Any:
        if isinstance(value, Mapping):
            return self._scrub_mapping(value)
        if isinstance(value, list):
            return [self._scrub_value(item) for item in value]
        if isinstance(value, tuple):
            return tuple(self._scrub_value(item) for item in value)
        return value

    def _scrub_mapping(self, data: Mapping[Any, Any]) -> dict:
        result = {}
        for key, value in data.items():
            if self.is_sensitive(key):
                result[key] = REDACTION_CHAR if _is_container(value) else _mask(value)
            else:
                result[key] = self._scrub_value(value)
        return result

    def _copy(self, value: Any) -> Any:
        if isinstance(value, Mapping):
            return {k: self._copy(v) for k, v in value.items()}
        if isinstance(value, list):
            return [self._copy(v) for v in value]
        if isinstance(value, tuple):
            return tuple(self._copy(v) for v in value)
        return value


def scrub(value: Any, rules: Sequence[ScrubRule]) -> Any:
    """Redact value with the given rules. See Scrubber."""
    return Scrubber(rules).scrub(value)
