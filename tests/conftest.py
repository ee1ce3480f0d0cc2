"""
Pytest configuration for pt-geosite tests.

Registers custom markers and provides in-process fake qBittorrent and
Transmission backends served through ``httpx.MockTransport``.
"""

import base64
import sys
from pathlib import Path
from typing import Dict, List, Optional

import httpx
import pytest

# Add project root to Python path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))


def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )
    config.addinivalue_line(
        "markers", "e2e: mark test as an end-to-end test"
    )


# ============================================================================
# Fake backends
# ============================================================================

class FakeQBittorrent:
    """
    Minimal qBittorrent Web API.

    Args:
        torrents: dicts with keys hash, is_private, trackers (list of URLs)
        login_status: HTTP status answered on /auth/login
        sid: SID cookie value; None answers "Fails." without a cookie
        broken_properties: hashes whose properties call returns invalid JSON
        broken_trackers: hashes whose trackers call returns HTTP 404
        info_status: HTTP status answered on /torrents/info
    """

    def __init__(
        self,
        torrents: List[dict],
        login_status: int = 200,
        sid: Optional[str] = "qb-session-1",
        broken_properties=(),
        broken_trackers=(),
        info_status: int = 200,
    ):
        self.torrents = torrents
        self.login_status = login_status
        self.sid = sid
        self.broken_properties = set(broken_properties)
        self.broken_trackers = set(broken_trackers)
        self.info_status = info_status
        self.requests: List[httpx.Request] = []

    def paths(self) -> List[str]:
        return [request.url.path for request in self.requests]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if path == "/api/v2/auth/login":
            if self.login_status != 200:
                return httpx.Response(self.login_status, text="Forbidden")
            if self.sid is None:
                return httpx.Response(200, text="Fails.")
            return httpx.Response(200, text="Ok.", headers={"Set-Cookie": f"SID={self.sid}; HttpOnly; path=/"})

        if request.headers.get("Cookie") != f"SID={self.sid}":
            return httpx.Response(403, text="Forbidden")

        if path == "/api/v2/torrents/info":
            if self.info_status != 200:
                return httpx.Response(self.info_status, text="error")
            return httpx.Response(200, json=[{"hash": t["hash"], "name": t["hash"]} for t in self.torrents])

        torrent_hash = request.url.params.get("hash")
        torrent = next((t for t in self.torrents if t["hash"] == torrent_hash), None)
        if torrent is None:
            return httpx.Response(404, text="Not Found")

        if path == "/api/v2/torrents/properties":
            if torrent_hash in self.broken_properties:
                return httpx.Response(200, text="<html>oops</html>")
            return httpx.Response(200, json={"is_private": torrent["is_private"], "save_path": "/data"})

        if path == "/api/v2/torrents/trackers":
            if torrent_hash in self.broken_trackers:
                return httpx.Response(404, text="Not Found")
            entries = [{"url": "** [DHT] **", "status": 0}]
            entries += [{"url": url, "status": 2} for url in torrent["trackers"]]
            return httpx.Response(200, json=entries)

        return httpx.Response(404, text="Not Found")

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


class FakeTransmission:
    """
    Minimal Transmission RPC endpoint with the 409 session-token challenge.

    Args:
        torrents: dicts with keys id, name, trackers (list of announce URLs)
        session_id: Token handed out on 409 and expected afterwards
        username/password: Accepted Basic credentials
        send_session_header: Whether 409 responses carry the token header
        status: Status answered once the token is accepted
        body: Raw body answered once the token is accepted (overrides torrents)
    """

    def __init__(
        self,
        torrents: List[dict],
        session_id: str = "abc123",
        username: str = "user",
        password: str = "secret",
        send_session_header: bool = True,
        status: int = 200,
        body: Optional[bytes] = None,
    ):
        self.torrents = torrents
        self.session_id = session_id
        self.expected_auth = "Basic " + base64.b64encode(f"{username}:{password}".encode()).decode()
        self.send_session_header = send_session_header
        self.status = status
        self.body = body
        self.requests: List[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)

        if request.url.path != "/transmission/rpc":
            return httpx.Response(404)
        if request.headers.get("Authorization") != self.expected_auth:
            return httpx.Response(401, text="Unauthorized")
        if request.headers.get("X-Transmission-Session-Id") != self.session_id:
            headers = {"X-Transmission-Session-Id": self.session_id} if self.send_session_header else {}
            return httpx.Response(409, text="Conflict", headers=headers)

        if self.body is not None:
            return httpx.Response(self.status, content=self.body)

        torrents = [
            {
                "id": t["id"],
                "name": t.get("name", f"torrent-{t['id']}"),
                "trackers": [
                    {"announce": url, "id": index, "scrape": "", "tier": 0}
                    for index, url in enumerate(t["trackers"])
                ],
            }
            for t in self.torrents
        ]
        return httpx.Response(self.status, json={"arguments": {"torrents": torrents}, "result": "success"})

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


def route_by_host(backends: Dict[str, object]) -> httpx.MockTransport:
    """One transport dispatching each request to the fake serving its host."""
    def handler(request: httpx.Request) -> httpx.Response:
        backend = backends.get(request.url.host)
        if backend is None:
            raise httpx.ConnectError(f"connection refused: {request.url.host}", request=request)
        return backend.handler(request)

    return httpx.MockTransport(handler)


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def qb_torrents():
    """One private and one public torrent."""
    return [
        {"hash": "a" * 40, "is_private": True, "trackers": ["http://tracker.example.com/announce"]},
        {"hash": "b" * 40, "is_private": False, "trackers": ["http://other.example.com/announce"]},
    ]


@pytest.fixture
def tr_torrents():
    """Two torrents sharing a tracker, plus a UDP/IP tracker."""
    return [
        {"id": 1, "trackers": ["http://shared.example.org/announce", "udp://1.2.3.4:80/announce"]},
        {"id": 2, "trackers": ["http://shared.example.org/announce"]},
    ]


@pytest.fixture
def fake_qbittorrent(qb_torrents):
    return FakeQBittorrent(qb_torrents)


@pytest.fixture
def fake_transmission(tr_torrents):
    return FakeTransmission(tr_torrents)


@pytest.fixture
def make_qbittorrent():
    """Factory for FakeQBittorrent instances."""
    return FakeQBittorrent


@pytest.fixture
def make_transmission():
    """Factory for FakeTransmission instances."""
    return FakeTransmission


@pytest.fixture
def routed_transport():
    """Factory building one transport out of several fakes keyed by host."""
    return route_by_host
