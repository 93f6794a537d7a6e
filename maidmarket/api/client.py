"""Thin ``httpx`` wrapper around the marketplace REST API.

Every endpoint answers with the same ``{"success", "data", "error"}``
envelope. :class:`ApiClient` attaches the bearer token, decodes the envelope
and turns non-2xx answers or transport failures into :class:`ApiError` so the
endpoint wrappers only deal with ``data``.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from maidmarket.errors import ApiError
from maidmarket.schemas.error import ErrorType
from maidmarket.schemas.favorites import ApiEnvelope
from maidmarket.settings import AppSettings, get_settings

logger = logging.getLogger(__name__)

_FALLBACK_ERROR = "Request failed"


class ApiClient:
    """Authenticated JSON client shared by the endpoint wrappers."""

    def __init__(
        self,
        *,
        base_url: str,
        token: str | None = None,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._token = token
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @classmethod
    def from_settings(
        cls,
        settings: AppSettings | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "ApiClient":
        resolved = settings or get_settings()
        return cls(
            base_url=resolved.base_url,
            token=resolved.api_token,
            timeout=resolved.request_timeout_seconds,
            transport=transport,
        )

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                headers=self._headers(),
                timeout=self._timeout,
                transport=self._transport,
            )
        return self._client

    async def request(
        self,
        method: str,
        endpoint: str,
        *,
        json: Any = None,
        allow_status: tuple[int, ...] = (),
    ) -> ApiEnvelope:
        """Send a request and return the decoded envelope.

        ``allow_status`` lists non-2xx codes the caller wants to inspect
        itself instead of receiving an :class:`ApiError`.
        """

        client = self._get_client()
        try:
            response = await client.request(method, endpoint, json=json)
        except httpx.TimeoutException as exc:
            logger.debug(f"{method} {endpoint} timed out: {exc}")
            raise ApiError(
                f"{method} {endpoint} timed out", error_type=ErrorType.TIMEOUT_ERROR
            ) from exc
        except httpx.HTTPError as exc:
            logger.debug(f"{method} {endpoint} failed: {exc}")
            raise ApiError(f"{method} {endpoint} failed: {exc}") from exc

        envelope = _decode_envelope(response)
        if response.is_success or response.status_code in allow_status:
            return envelope

        message = envelope.error or _FALLBACK_ERROR
        logger.debug(f"{method} {endpoint} returned {response.status_code}: {message}")
        raise ApiError(message, status_code=response.status_code)

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()


def _decode_envelope(response: httpx.Response) -> ApiEnvelope:
    try:
        payload = response.json()
    except ValueError:
        return ApiEnvelope(success=response.is_success)
    if not isinstance(payload, dict):
        return ApiEnvelope(success=response.is_success, data=payload)
    try:
        return ApiEnvelope.model_validate(payload)
    except ValidationError:
        return ApiEnvelope(success=response.is_success, data=payload)


__all__ = ["ApiClient"]
