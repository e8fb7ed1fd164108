"""
Person Resolution.

A static person from the configuration wins over a person provider; the
provider is called with no arguments, at most once per reported event.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Mapping, Optional

from magic_notifier.errors import CaptureError

logger = logging.getLogger(__name__)

PERSON_FIELDS = ("id", "username", "email")

PersonProvider = Callable[[], Optional[Mapping[str, Any]]]


def normalize_person(person: Any) -> Optional[Dict[str, Any]]:
    """
    Keep the id/username/email fields of person data.

    The id is sent as a string. Person data without an id is dropped.

    Raises:
        CaptureError: If person data is not a mapping
    """
    if person is None:
        return None
    if not isinstance(person, Mapping):
        raise CaptureError(
            "Person data must be a mapping",
            details={"type": type(person).__name__},
        )
    if person.get("id") is None:
        logger.debug("Person data without an id ignored")
        return None

    result: Dict[str, Any] = {"id": str(person["id"])}
    for key in PERSON_FIELDS[1:]:
        if person.get(key) is not None:
            result[key] = person[key]
    return result


def resolve_person(
    static_person: Optional[Mapping[str, Any]],
    provider: Optional[PersonProvider],
) -> Optional[Dict[str, Any]]:
    """
    Person data for the event being reported.

    Raises:
        CaptureError: If the provider fails or returns something other
            than a mapping
    """
    if static_person:
        return normalize_person(static_person)
    if provider is None:
        return None
    try:
        person = provider()
    except Exception as e:
        raise CaptureError(
            f"Person provider failed: {e}",
            details={"error_type": type(e).__name__},
        ) from e
    return normalize_person(person)
