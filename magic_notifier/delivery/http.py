"""
Blocking HTTP sender.

Default network collaborator for the blocking handler. A single payload
is POSTed to ``item/``, several to ``item_batch``. The request runs on a
private event loop so the caller is blocked until the collector answers.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Callable, Dict, List, Sequence, Union

import aiohttp

from magic_notifier.errors import DeliveryError
from magic_notifier.models import ModelPayload

logger = logging.getLogger(__name__)

ACCESS_TOKEN_HEADER = "X-Rollbar-Access-Token"


class AiohttpSender:
    """
    Send payloads to the collector API with aiohttp.

    Example:
        sender = AiohttpSender("https://api.rollbar.com/api/1/", timeout=3)
        sender.send(access_token, [payload])
    """

    def __init__(
        self,
        base_api_url: str,
        timeout: float = 3.0,
        session_factory: Callable[..., aiohttp.ClientSession] = aiohttp.ClientSession,
    ):
        """
        Initialize the sender.

        Args:
            base_api_url: Collector API root, e.g. "https://api.rollbar.com/api/1/"
            timeout: Total request timeout in seconds
            session_factory: Creates the client session; replaced in tests
        """
        self._base_api_url = base_api_url if base_api_url.endswith("/") else base_api_url + "/"
        self._timeout = timeout
        self._session_factory = session_factory

    def endpoint_for(self, payloads: Sequence[ModelPayload]) -> str:
        if len(payloads) == 1:
            return self._base_api_url + "item/"
        return self._base_api_url + "item_batch"

    @staticmethod
    def encode(payloads: Sequence[ModelPayload]) -> str:
        body: Union[Dict[str, Any], List[Dict[str, Any]]]
        if len(payloads) == 1:
            body = payloads[0].to_dict()
        else:
            body = [payload.to_dict() for payload in payloads]
        return json.dumps(body, default=str)

    def send(self, access_token: str, payloads: Sequence[ModelPayload]) -> None:
        """
        Send a batch and wait for the answer.

        Raises:
            DeliveryError: On network failure, a non-200 answer, or when
                called from inside a running event loop
        """
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            pass
        else:
            raise DeliveryError("Blocking send called from a running event loop")

        asyncio.run(self.send_async(access_token, payloads))

    async def send_async(self, access_token: str, payloads: Sequence[ModelPayload]) -> Dict[str, Any]:
        """
        Coroutine behind send().

        Returns:
            The decoded collector answer
        """
        if not payloads:
            return {}

        url = self.endpoint_for(payloads)
        headers = {
            ACCESS_TOKEN_HEADER: access_token,
            "Content-Type": "application/json",
        }
        timeout = aiohttp.ClientTimeout(total=self._timeout)

        try:
            async with self._session_factory(timeout=timeout) as session:
                async with session.post(url, data=self.encode(payloads), headers=headers) as response:
                    text = await response.text()
                    if response.status != 200:
                        raise DeliveryError(
                            f"Collector answered {response.status}",
                            details={"url": url, "response": text[:200]},
                        )
        except DeliveryError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise DeliveryError(
                f"Could not reach collector: {e}",
                details={"url": url, "error_type": type(e).__name__},
            ) from e

        logger.debug("Sent %d payload(s) to %s", len(payloads), url)
        try:
            return json.loads(text) if text else {}
        except ValueError:
            return {"raw": text}
