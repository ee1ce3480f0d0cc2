"""
Transmission RPC Client Service for pt-geosite

Transmission protects its RPC endpoint against CSRF with a session token the
client must obtain reactively: the first request without (or with a stale)
``X-Transmission-Session-Id`` header is answered with HTTP 409 carrying a
fresh token. This module models that exchange as two explicit steps:

    1. attempt       - send the buffered request body
    2. on 409        - capture the token from the response headers and
                       resend the very same body bytes, exactly once

A second 409 means the token was rejected, which is an authentication
failure. There is no further retry.

RPC Reference: https://github.com/transmission/transmission/blob/main/docs/rpc-spec.md
"""

import json
import logging
from typing import List, Optional, Sequence

import httpx
from pydantic import ValidationError

from ..schemas.backend_payloads import TorrentGetResponse, TransmissionTorrent
from .exceptions import (
    AuthenticationFailure,
    DecodeFailure,
    TransportFailure,
    classify_http_status,
)

logger = logging.getLogger(__name__)

SESSION_HEADER = "X-Transmission-Session-Id"
RPC_PATH = "/transmission/rpc"
TORRENT_FIELDS = ("id", "name", "trackers")


def build_rpc_body(method: str, fields: Sequence[str]) -> bytes:
    """
    Serialize an RPC call to the exact bytes sent on the wire.

    >>> build_rpc_body("torrent-get", ["id"])
    b'{"method":"torrent-get","arguments":{"fields":["id"]}}'
    """
    payload = {"method": method, "arguments": {"fields": list(fields)}}
    return json.dumps(payload, separators=(",", ":")).encode("utf-8")


class TransmissionClient:
    """
    Client for the Transmission RPC interface.

    Args:
        host: Transmission address (host:port or full URL)
        username: RPC username
        password: RPC password
        timeout: Per-request timeout in seconds
        transport: Optional httpx transport (used by tests)

    Example:
        async with TransmissionClient("10.0.0.3:9091", "user", "secret") as tr:
            torrents = await tr.get_torrents()
    """

    def __init__(
        self,
        host: str,
        username: Optional[str] = None,
        password: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if host and not host.startswith('http'):
            host = f"http://{host}"
        self.host = host.rstrip('/')
        self.username = username or ''
        self.password = password or ''
        self.timeout = timeout
        self.session_id: Optional[str] = None
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> "TransmissionClient":
        self._client = httpx.AsyncClient(
            base_url=self.host,
            auth=httpx.BasicAuth(self.username, self.password),
            timeout=self.timeout,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def __repr__(self) -> str:
        return f"TransmissionClient(host={self.host!r}, username={self.username!r})"

    async def get_torrents(self, fields: Sequence[str] = TORRENT_FIELDS) -> List[TransmissionTorrent]:
        """
        Run ``torrent-get`` for every torrent in the session.

        Returns:
            Torrents in server order

        Raises:
            AuthenticationFailure: 401/403, or the session token exchange failed
            TransportFailure: On connection errors
            DecodeFailure: Invalid JSON, unexpected shape, or RPC result != success
            BackendError: Any other non-200 status
        """
        body = build_rpc_body("torrent-get", fields)
        response = await self._post_rpc(body)

        if response.status_code != 200:
            raise classify_http_status(
                response.status_code,
                f"RPC request failed: {response.reason_phrase}",
                endpoint=self.host,
            )

        try:
            document = TorrentGetResponse.model_validate(response.json())
        except ValidationError as e:
            raise DecodeFailure(
                f"unexpected torrent-get payload: {e.error_count()} validation error(s)",
                endpoint=self.host,
            ) from e
        except ValueError as e:
            raise DecodeFailure(f"invalid JSON from RPC: {e}", endpoint=self.host) from e

        if document.result != "success":
            raise DecodeFailure(f"torrent-get returned '{document.result}'", endpoint=self.host)

        logger.debug(f"torrent-get returned {len(document.arguments.torrents)} torrents")
        return document.arguments.torrents

    async def _post_rpc(self, body: bytes) -> httpx.Response:
        """Send ``body``; on a 409 challenge capture the token and resend it once."""
        response = await self._send(body)
        if response.status_code != 409:
            return response

        session_id = response.headers.get(SESSION_HEADER)
        if not session_id:
            raise AuthenticationFailure(
                f"409 without {SESSION_HEADER} header",
                endpoint=self.host,
                status_code=409,
            )

        logger.debug("Transmission session token refreshed, resending request")
        self.session_id = session_id

        response = await self._send(body)
        if response.status_code == 409:
            raise AuthenticationFailure(
                "session token rejected after refresh",
                endpoint=self.host,
                status_code=409,
            )
        return response

    async def _send(self, body: bytes) -> httpx.Response:
        if self._client is None:
            raise RuntimeError("TransmissionClient must be used as an async context manager")

        headers = {"Content-Type": "application/json"}
        if self.session_id:
            headers[SESSION_HEADER] = self.session_id

        request = self._client.build_request("POST", RPC_PATH, content=body, headers=headers)
        try:
            return await self._client.send(request)
        except httpx.HTTPError as e:
            raise TransportFailure(
                f"Transmission connection error: {e}",
                endpoint=self.host,
                original_exception=e,
            ) from e
