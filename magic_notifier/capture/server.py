"""Server / environment block of a payload."""

from __future__ import annotations

import sys
from typing import Any, Dict, Optional, Sequence


def build_server_data(
    host: str,
    root: str,
    code_version: Optional[str] = None,
    branch: Optional[str] = None,
    argv: Optional[Sequence[str]] = None,
) -> Dict[str, Any]:
    """
    Build ``data.server``.

    ``branch`` and ``code_version`` are omitted entirely when empty;
    ``argv`` is only included for non-request processes.
    """
    server: Dict[str, Any] = {
        "host": host,
        "root": root,
    }
    if code_version:
        server["code_version"] = code_version
    if branch:
        server["branch"] = branch
    if argv is not None:
        server["argv"] = list(argv)
    return server


def process_argv() -> Sequence[str]:
    return list(sys.argv)
