"""HTTP client for the remote portal functions."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Tuple

import httpx

from .config import ServiceConfig
from .constants import DEFAULT_SERVICE_TIMEOUT
from .registry import StepKey, document_steps, resolve_step_key, step_for_key

logger = logging.getLogger(__name__)

_KEY_BY_DOCUMENT_NAME = {step.document_name: step.key for step in document_steps()}


def to_wire_name(step_key: StepKey | str) -> str:
    """Map a step key to the sub-document name the portal expects."""
    step = step_for_key(step_key)
    return step.document_name or step.key.value


def from_wire_name(name: str) -> str:
    """Map a portal sub-document name back to a step key value.

    Unknown names are returned unchanged so callers can decide what to drop.
    """
    key = _KEY_BY_DOCUMENT_NAME.get(name)
    if key is not None:
        return key.value
    try:
        return resolve_step_key(name).value
    except ValueError:
        return name


class PortalClient:
    """Thin JSON-over-HTTP caller for portal functions such as
    ``save-registration-draft``.

    A fresh ``httpx.AsyncClient`` is opened per call; ``transport`` can be
    injected for tests.
    """

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        timeout: float = DEFAULT_SERVICE_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        if not base_url:
            raise ValueError("base_url is required for the portal client")
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_config(
        cls, config: ServiceConfig, transport: Optional[httpx.AsyncBaseTransport] = None
    ) -> "PortalClient":
        return cls(
            base_url=config.base_url or "",
            api_key=config.api_key,
            timeout=config.timeout,
            transport=transport,
        )

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def call(self, function: str, payload: Dict[str, Any]) -> Tuple[int, Dict[str, Any]]:
        """POST ``payload`` to ``function`` and return status code and JSON body.

        Raises:
            httpx.HTTPError: When the request could not be completed.
        """
        async with httpx.AsyncClient(
            base_url=self.base_url,
            headers=self._headers(),
            timeout=self.timeout,
            transport=self._transport,
        ) as client:
            response = await client.post(f"/{function}", json=payload)
        try:
            body = response.json()
        except ValueError:
            logger.warning(
                f"Portal function {function} returned non-JSON body (status {response.status_code})"
            )
            body = {}
        if not isinstance(body, dict):
            body = {"data": body}
        return response.status_code, body
