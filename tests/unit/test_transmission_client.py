"""
Unit tests for TransmissionClient

Tests cover:
    - RPC body and Basic authorization header
    - 409 session-token challenge: exactly one resend with the same body
    - Token reuse on later calls
    - Failures: 401, 409 without token, repeated 409, non-200, bad JSON,
      RPC result != success, connection errors
"""

import base64
import json

import httpx
import pytest

from ptgeosite.services.exceptions import (
    AuthenticationFailure,
    BackendError,
    DecodeFailure,
    TransportFailure,
)
from ptgeosite.services.transmission_client import (
    SESSION_HEADER,
    TransmissionClient,
    build_rpc_body,
)


EXPECTED_BODY = b'{"method":"torrent-get","arguments":{"fields":["id","name","trackers"]}}'


def make_client(transport, username="user", password="secret") -> TransmissionClient:
    return TransmissionClient("tr.test:9091", username, password, transport=transport)


# ============================================================================
# Request construction
# ============================================================================

def test_rpc_body_bytes():
    assert build_rpc_body("torrent-get", ["id", "name", "trackers"]) == EXPECTED_BODY


@pytest.mark.asyncio
async def test_basic_credentials_on_the_wire(make_transmission, tr_torrents):
    fake = make_transmission(tr_torrents, password="p@ss:word")

    async with make_client(fake.transport, password="p@ss:word") as tr:
        await tr.get_torrents()

    expected = "Basic " + base64.b64encode(b"user:p@ss:word").decode()
    assert [r.headers["Authorization"] for r in fake.requests] == [expected, expected]


# ============================================================================
# Session token exchange
# ============================================================================

@pytest.mark.asyncio
async def test_409_triggers_exactly_one_resend(fake_transmission):
    """First 409 with token abc123 -> one retry carrying abc123 and the same body."""
    async with make_client(fake_transmission.transport) as tr:
        torrents = await tr.get_torrents()

    first, retry = fake_transmission.requests
    assert len(fake_transmission.requests) == 2
    assert SESSION_HEADER not in first.headers
    assert retry.headers[SESSION_HEADER] == "abc123"
    assert first.content == retry.content == EXPECTED_BODY
    assert first.headers["Authorization"] == retry.headers["Authorization"]
    assert first.headers["Content-Type"] == "application/json"
    assert len(torrents) == 2


@pytest.mark.asyncio
async def test_token_is_reused(fake_transmission):
    async with make_client(fake_transmission.transport) as tr:
        await tr.get_torrents()
        await tr.get_torrents()

    assert tr.session_id == "abc123"
    # 409 + resend, then a single request with the known token
    assert len(fake_transmission.requests) == 3


@pytest.mark.asyncio
async def test_no_resend_without_challenge(make_transmission, tr_torrents):
    fake = make_transmission(tr_torrents)

    async with make_client(fake.transport) as tr:
        tr.session_id = "abc123"
        await tr.get_torrents()

    assert len(fake.requests) == 1


@pytest.mark.asyncio
async def test_409_without_token_header(make_transmission, tr_torrents):
    fake = make_transmission(tr_torrents, send_session_header=False)

    async with make_client(fake.transport) as tr:
        with pytest.raises(AuthenticationFailure) as exc_info:
            await tr.get_torrents()

    assert exc_info.value.status_code == 409
    assert len(fake.requests) == 1


@pytest.mark.asyncio
async def test_second_409_is_not_retried():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(409, headers={SESSION_HEADER: f"token-{len(calls)}"})

    async with make_client(httpx.MockTransport(handler)) as tr:
        with pytest.raises(AuthenticationFailure, match="rejected"):
            await tr.get_torrents()

    assert len(calls) == 2


# ============================================================================
# Failures
# ============================================================================

@pytest.mark.asyncio
async def test_bad_credentials(fake_transmission):
    async with make_client(fake_transmission.transport, password="wrong") as tr:
        with pytest.raises(AuthenticationFailure) as exc_info:
            await tr.get_torrents()

    assert exc_info.value.status_code == 401


@pytest.mark.asyncio
async def test_non_200_after_resend(make_transmission, tr_torrents):
    fake = make_transmission(tr_torrents, status=500)

    async with make_client(fake.transport) as tr:
        with pytest.raises(BackendError) as exc_info:
            await tr.get_torrents()

    assert exc_info.value.status_code == 500


@pytest.mark.asyncio
async def test_invalid_json(make_transmission, tr_torrents):
    fake = make_transmission(tr_torrents, body=b"{not json")

    async with make_client(fake.transport) as tr:
        with pytest.raises(DecodeFailure):
            await tr.get_torrents()


@pytest.mark.asyncio
async def test_rpc_error_result(make_transmission, tr_torrents):
    body = json.dumps({"arguments": {}, "result": "no such method"}).encode()
    fake = make_transmission(tr_torrents, body=body)

    async with make_client(fake.transport) as tr:
        with pytest.raises(DecodeFailure, match="no such method"):
            await tr.get_torrents()


@pytest.mark.asyncio
async def test_unexpected_shape(make_transmission, tr_torrents):
    body = json.dumps({"arguments": {"torrents": "nope"}, "result": "success"}).encode()
    fake = make_transmission(tr_torrents, body=body)

    async with make_client(fake.transport) as tr:
        with pytest.raises(DecodeFailure):
            await tr.get_torrents()


@pytest.mark.asyncio
async def test_connection_error():
    def handler(request):
        raise httpx.ConnectTimeout("timed out", request=request)

    async with make_client(httpx.MockTransport(handler)) as tr:
        with pytest.raises(TransportFailure):
            await tr.get_torrents()
