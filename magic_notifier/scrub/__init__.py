"""
Scrubbing Module

Redaction of sensitive fields in request data and other nested payload
sections.
"""

from .scrubber import (
    REDACTION_CHAR,
    ExactRule,
    PatternRule,
    ScrubRule,
    Scrubber,
    compile_rule,
    compile_rules,
    scrub,
)

__all__ = [
    "REDACTION_CHAR",
    "ExactRule",
    "PatternRule",
    "ScrubRule",
    "Scrubber",
    "compile_rule",
    "compile_rules",
    "scrub",
]
