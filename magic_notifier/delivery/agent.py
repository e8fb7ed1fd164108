"""
Relay file writer for the agent handler.

Payloads are appended, one JSON document per line, to a relay file that
a separately running agent picks up and forwards. Writing never touches
the network; once the append succeeds the notifier is done with the batch.
"""

from __future__ import annotations

import json
import logging
import os
import time
from typing import Callable, IO, Optional, Sequence

from magic_notifier.errors import DeliveryError
from magic_notifier.models import ModelPayload

logger = logging.getLogger(__name__)

RELAY_FILE_SUFFIX = ".rollbar"


def relay_file_name(pid: int, started_at: float) -> str:
    """``rollbar-relay.<pid>.<start time>.rollbar``"""
    return f"rollbar-relay.{pid}.{started_at:.6f}{RELAY_FILE_SUFFIX}"


class RelayFileWriter:
    """
    Append payload batches to a relay file.

    The file is opened lazily on the first write and kept open until
    close(). One file per writer, named after the process id and the
    writer's start time.

    Example:
        writer = RelayFileWriter("/var/tmp")
        writer.write([payload])
        writer.close()
    """

    def __init__(
        self,
        log_location: str,
        pid: Optional[int] = None,
        clock: Callable[[], float] = time.time,
    ):
        self._log_location = log_location
        self._file_name = relay_file_name(pid if pid is not None else os.getpid(), clock())
        self._handle: Optional[IO[str]] = None

    @property
    def path(self) -> str:
        return os.path.join(self._log_location, self._file_name)

    def write(self, payloads: Sequence[ModelPayload]) -> None:
        """
        Append a batch, one line per payload.

        Raises:
            DeliveryError: If the relay file cannot be opened or written
        """
        if not payloads:
            return
        lines = "".join(json.dumps(p.to_dict(), default=str) + "\n" for p in payloads)
        try:
            if self._handle is None:
                self._handle = open(self.path, "a", encoding="utf-8")
                logger.debug("Opened relay file %s", self.path)
            self._handle.write(lines)
            self._handle.flush()
        except OSError as e:
            raise DeliveryError(
                f"Could not write relay file: {e}",
                details={"path": self.path},
            ) from e

    def close(self) -> None:
        if self._handle is not None:
            self._handle.close()
            self._handle = None
