"""
QBittorrent Client Service for pt-geosite

Dedicated module for the qBittorrent Web API calls needed to collect tracker
hostnames.

Features:
    - Authentication with session cookie management (SID)
    - Torrent list retrieval
    - Per-torrent properties (private flag) and tracker list retrieval
    - Errors mapped onto the pt-geosite exception taxonomy

API Reference: https://github.com/qbittorrent/qBittorrent/wiki/WebUI-API-(qBittorrent-4.1)
"""

import logging
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from ..schemas.backend_payloads import (
    QBTorrentInfo,
    QBTorrentList,
    QBTorrentProperties,
    QBTracker,
    QBTrackerList,
)
from .exceptions import (
    AuthenticationFailure,
    DecodeFailure,
    TransportFailure,
    classify_http_status,
)

logger = logging.getLogger(__name__)

SESSION_COOKIE = "SID"


class QBittorrentClient:
    """
    Client for the qBittorrent Web API.

    Use as an async context manager; the underlying HTTP client lives for the
    duration of the block and the session cookie obtained by ``login()`` is
    sent with every later call.

    Args:
        host: qBittorrent Web UI address (host:port or full URL)
        username: Web UI username
        password: Web UI password
        timeout: Per-request timeout in seconds
        transport: Optional httpx transport (used by tests)

    Example:
        async with QBittorrentClient("10.0.0.2:8080", "admin", "adminadmin") as qb:
            await qb.login()
            for torrent in await qb.get_torrents():
                props = await qb.get_properties(torrent.hash)
    """

    def __init__(
        self,
        host: str,
        username: Optional[str] = None,
        password: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        # Ensure host has protocol
        if host and not host.startswith('http'):
            host = f"http://{host}"
        self.host = host.rstrip('/')
        self.username = username or ''
        self.password = password or ''
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        self._session_id: Optional[str] = None

    async def __aenter__(self) -> "QBittorrentClient":
        self._client = httpx.AsyncClient(
            base_url=f"{self.host}/api/v2",
            timeout=self.timeout,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def __repr__(self) -> str:
        return f"QBittorrentClient(host={self.host!r}, username={self.username!r})"

    @property
    def is_authenticated(self) -> bool:
        return self._session_id is not None

    async def login(self) -> str:
        """
        Authenticate with qBittorrent and keep the session cookie.

        Returns:
            The SID session cookie value

        Raises:
            AuthenticationFailure: Non-200 response or no SID cookie
            TransportFailure: On connection errors
        """
        logger.debug(f"Authenticating with qBittorrent at {self.host}")

        response = await self._request(
            "POST",
            "/auth/login",
            data={"username": self.username, "password": self.password},
        )

        if response.status_code != 200:
            raise AuthenticationFailure(
                "qBittorrent authentication failed",
                endpoint=self.host,
                status_code=response.status_code,
            )

        session_id = response.cookies.get(SESSION_COOKIE)
        if not session_id:
            # qBittorrent answers "Fails." with HTTP 200 on bad credentials
            raise AuthenticationFailure(
                f"{SESSION_COOKIE} cookie not found (response: {response.text.strip()[:50]!r})",
                endpoint=self.host,
            )

        # Sent on every API path, not only under /auth where it was set
        self._client.cookies = httpx.Cookies({SESSION_COOKIE: session_id})
        self._session_id = session_id
        logger.debug("Authenticated with qBittorrent")
        return session_id

    async def get_torrents(self) -> List[QBTorrentInfo]:
        """Fetch the torrent list, in server order."""
        payload = await self._get_json("/torrents/info")
        return self._validate(QBTorrentList.validate_python, payload, "torrents/info")

    async def get_properties(self, torrent_hash: str) -> QBTorrentProperties:
        """Fetch the generic properties of one torrent."""
        payload = await self._get_json("/torrents/properties", params={"hash": torrent_hash})
        return self._validate(QBTorrentProperties.model_validate, payload, "torrents/properties")

    async def get_trackers(self, torrent_hash: str) -> List[QBTracker]:
        """Fetch the tracker list of one torrent."""
        payload = await self._get_json("/torrents/trackers", params={"hash": torrent_hash})
        return self._validate(QBTrackerList.validate_python, payload, "torrents/trackers")

    async def _get_json(self, path: str, params: Optional[Dict[str, str]] = None) -> Any:
        if self._session_id is None:
            raise AuthenticationFailure("not logged in", endpoint=self.host)

        response = await self._request("GET", path, params=params)

        if response.status_code != 200:
            raise classify_http_status(
                response.status_code,
                f"GET {path} failed",
                endpoint=self.host,
            )

        try:
            return response.json()
        except ValueError as e:
            raise DecodeFailure(f"invalid JSON from {path}: {e}", endpoint=self.host) from e

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        if self._client is None:
            raise RuntimeError("QBittorrentClient must be used as an async context manager")

        try:
            return await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise TransportFailure(
                f"qBittorrent connection error: {e}",
                endpoint=self.host,
                original_exception=e,
            ) from e

    def _validate(self, validator, payload: Any, what: str):
        try:
            return validator(payload)
        except ValidationError as e:
            raise DecodeFailure(
                f"unexpected {what} payload: {e.error_count()} validation error(s)",
                endpoint=self.host,
            ) from e
