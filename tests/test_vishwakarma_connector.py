"""
Vishwakarma connector tests against a local aiohttp partner stub.
"""
import asyncio

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from artisan_sync.connectors.vishwakarma_connector import VishwakarmaConnector
from artisan_sync.exceptions import AuthError, FetchError, PushError

TOKEN = "partner-token"


def _partner_app(state):
    async def authenticate(request):
        state["auth_params"] = dict(request.query)
        if request.query.get("Password") != "secret":
            return web.json_response({"Success": False, "Message": "Invalid credentials"})
        return web.json_response({"Success": True, "Token": TOKEN})

    async def artisans(request):
        state.setdefault("fetches", []).append(dict(request.query))
        if request.headers.get("Authorization") != f"Bearer {TOKEN}":
            return web.json_response({"Message": "Unauthorized"}, status=401)
        if state.get("fetch_status"):
            return web.Response(status=state["fetch_status"], text="upstream error")
        page = int(request.query.get("PageNo", "1"))
        return web.json_response({"data": state.get("pages", {}).get(page, [])})

    async def call_detail(request):
        body = await request.json()
        state.setdefault("pushed", []).append(body)
        if state.get("reject_push"):
            return web.json_response({"Message": "Invalid ArtisanId"}, status=400)
        return web.json_response({"Success": True, "Saved": len(body)})

    app = web.Application()
    app.router.add_post("/api/IITKnpArtisanData/AuthenticateUser", authenticate)
    app.router.add_get("/api/IITKnpArtisanData/GetArtisansIITKanpur", artisans)
    app.router.add_post("/api/IITKnpArtisanData/SaveIITKanpurArtisanCallDetail", call_detail)
    return app


def _against_partner(state, scenario, password="secret"):
    """Run scenario(connector) against a fresh partner stub."""
    async def main():
        async with TestServer(_partner_app(state)) as server:
            connector = VishwakarmaConnector(
                base_url=str(server.make_url("/")),
                user_id="IntegrationIITKnp",
                password=password,
                timeout_seconds=5,
            )
            return await scenario(connector)

    return asyncio.run(main())


# ---------------------------------------------------------------------------
# Authentication
# ---------------------------------------------------------------------------

def test_authenticate_returns_token():
    state = {}

    token = _against_partner(state, lambda c: c.authenticate())

    assert token == TOKEN
    assert state["auth_params"] == {"UserId": "IntegrationIITKnp", "Password": "secret"}


def test_authenticate_rejected_raises_auth_error():
    with pytest.raises(AuthError) as exc_info:
        _against_partner({}, lambda c: c.authenticate(), password="wrong")

    assert "Invalid credentials" in str(exc_info.value)
    assert exc_info.value.payload["Success"] is False


def test_unreachable_partner_raises_auth_error():
    connector = VishwakarmaConnector(base_url="http://127.0.0.1:1", password="secret", timeout_seconds=2)

    with pytest.raises(AuthError):
        asyncio.run(connector.authenticate())
    assert connector.get_status()["error_count"] == 1


# ---------------------------------------------------------------------------
# Fetch
# ---------------------------------------------------------------------------

def test_fetch_artisans_pages():
    state = {"pages": {1: [{"artisanId": "1"}, {"artisanId": "2"}]}}

    async def scenario(connector):
        token = await connector.authenticate()
        return (
            await connector.fetch_artisans(token, "2024-01-15", 1),
            await connector.fetch_artisans(token, "2024-01-15", 2),
        )

    first, second = _against_partner(state, scenario)

    assert [a["artisanId"] for a in first] == ["1", "2"]
    assert second == []
    assert state["fetches"] == [
        {"Date": "2024-01-15", "PageNo": "1"},
        {"Date": "2024-01-15", "PageNo": "2"},
    ]


def test_fetch_with_bad_token_raises_fetch_error():
    with pytest.raises(FetchError) as exc_info:
        _against_partner({}, lambda c: c.fetch_artisans("stale", "2024-01-15", 1))

    assert exc_info.value.status == 401
    assert exc_info.value.payload == {"Message": "Unauthorized"}


def test_fetch_server_error_raises_fetch_error():
    state = {"fetch_status": 502}

    with pytest.raises(FetchError) as exc_info:
        _against_partner(state, lambda c: c.fetch_artisans(TOKEN, "2024-01-15", 1))

    assert exc_info.value.status == 502
    assert exc_info.value.payload == "upstream error"


# ---------------------------------------------------------------------------
# Push
# ---------------------------------------------------------------------------

PAYLOAD = [{"ArtisanId": "501", "ReceiveCalls": 2, "date": "2024-01-15"}]


def test_push_call_details_posts_payload():
    state = {}

    response = _against_partner(state, lambda c: c.push_call_details(TOKEN, PAYLOAD))

    assert response == {"Success": True, "Saved": 1}
    assert state["pushed"] == [PAYLOAD]


def test_push_rejection_raises_push_error_with_payload():
    state = {"reject_push": True}

    with pytest.raises(PushError) as exc_info:
        _against_partner(state, lambda c: c.push_call_details(TOKEN, PAYLOAD))

    assert exc_info.value.status == 400
    assert exc_info.value.payload == {"Message": "Invalid ArtisanId"}
