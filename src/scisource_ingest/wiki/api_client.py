"""
MediaWiki Action API Client

Thin transport over ``/w/api.php`` for the Wikibase instance we publish to.

- Bearer-token (owner-only OAuth 2) authentication on every request
- MediaWiki ``error`` payloads surface as :class:`MediaWikiResponseError`
  carrying the API error code
- Transport and HTTP status failures surface as :class:`MediaWikiRequestError`
- The CSRF edit token is fetched lazily, once, and shared by every
  concurrent caller
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional

import httpx

from ..config import settings

logger = logging.getLogger("ingest.mediawiki")


# ---------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------

class MediaWikiRequestError(RuntimeError):
    """Raised when a request cannot be completed at the HTTP level."""


class MediaWikiResponseError(RuntimeError):
    """Raised when the API answers with an error object."""

    def __init__(self, code: str, info: str = "") -> None:
        super().__init__(f"{code}: {info}" if info else code)
        self.code = code
        self.info = info


# ---------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------

class MediaWikiClient:
    def __init__(
        self,
        endpoint: Optional[str] = None,
        access_token: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.endpoint = endpoint or settings.api_endpoint
        self._access_token = (
            access_token
            if access_token is not None
            else settings.wikibase_access_token.get_secret_value()
        )
        self._timeout = timeout or settings.http_timeout
        self._transport = transport

        self._csrf_token: Optional[str] = None
        self._csrf_lock = asyncio.Lock()

    def _headers(self) -> Dict[str, str]:
        if not self._access_token:
            return {}
        return {"Authorization": f"Bearer {self._access_token}"}

    async def _request(
        self,
        params: Dict[str, Any],
        data: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Make an authenticated API request.

        Args:
            params: query-string parameters; ``format=json`` is always added
            data: form body; when given the request is a POST
        """
        query = {**params, "format": "json", "formatversion": 2}

        try:
            async with httpx.AsyncClient(
                timeout=self._timeout,
                transport=self._transport,
            ) as client:
                if data is None:
                    resp = await client.get(self.endpoint, params=query, headers=self._headers())
                else:
                    resp = await client.post(
                        self.endpoint,
                        params=query,
                        data=data,
                        headers=self._headers(),
                    )
            resp.raise_for_status()
            payload = resp.json()
        except httpx.HTTPError as exc:
            raise MediaWikiRequestError(
                f"MediaWiki request failed: {type(exc).__name__}: {exc}"
            ) from exc
        except ValueError as exc:
            raise MediaWikiRequestError("MediaWiki returned a non-JSON response") from exc

        if "error" in payload:
            error = payload["error"]
            raise MediaWikiResponseError(
                error.get("code", "unknown"),
                error.get("info", ""),
            )
        return payload

    async def get(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """Read-only GET request."""
        return await self._request(params)

    async def get_csrf_token(self) -> str:
        if self._csrf_token is not None:
            return self._csrf_token

        async with self._csrf_lock:
            # Another task may have fetched it while we waited
            if self._csrf_token is not None:
                return self._csrf_token

            data = await self._request({"action": "query", "meta": "tokens"})
            token = data.get("query", {}).get("tokens", {}).get("csrftoken")
            if not token:
                raise MediaWikiResponseError(
                    "notoken", "No CSRF token in response from server"
                )
            self._csrf_token = token
            return token

    async def post_with_token(
        self,
        params: Dict[str, Any],
        data: Dict[str, Any],
    ) -> Dict[str, Any]:
        """
        POST a write action with the CSRF token.

        A stale token is refreshed and the request retried once.
        """
        token = await self.get_csrf_token()
        try:
            return await self._request(params, data={**data, "token": token})
        except MediaWikiResponseError as exc:
            if exc.code != "badtoken":
                raise
            logger.info("CSRF token rejected, refreshing")
            self._csrf_token = None
            token = await self.get_csrf_token()
            return await self._request(params, data={**data, "token": token})
