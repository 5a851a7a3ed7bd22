"""Tests for the PostgREST store client (respx)."""

import json

import httpx
import pytest
import pytest_asyncio
import respx

from portal.errors import ProviderError
from portal.store import StoreClient

BASE = "https://project.supabase.test"
REST = f"{BASE}/rest/v1"


@pytest_asyncio.fixture
async def httpx_client():
    async with httpx.AsyncClient() as client:
        yield client


@pytest.fixture
def token():
    return {"value": "user-jwt"}


@pytest.fixture
def client(httpx_client, token):
    return StoreClient(httpx_client, BASE, "anon-key", access_token=lambda: token["value"])


class TestScoping:
    """Unscoped reads and writes never leave the process."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("operation", ["select", "select_one", "delete"])
    async def test_empty_filters_rejected(self, client, operation):
        with respx.mock(assert_all_called=False) as router:
            route = router.route()
            with pytest.raises(ValueError, match="scoped"):
                await getattr(client, operation)("links", filters={})
            assert not route.called

    @pytest.mark.asyncio
    async def test_unscoped_update_rejected(self, client):
        with pytest.raises(ValueError, match="scoped"):
            await client.update("links", {"title": "x"}, filters={})


class TestStoreClient:
    @pytest.mark.asyncio
    @respx.mock
    async def test_select_encodes_filters_and_order(self, client):
        route = respx.get(f"{REST}/links").respond(200, json=[{"id": "1"}])

        rows = await client.select("links", filters={"user_id": "u1"}, order="created_at")

        assert rows == [{"id": "1"}]
        params = route.calls.last.request.url.params
        assert params["user_id"] == "eq.u1"
        assert params["order"] == "created_at.desc"
        assert params["select"] == "*"

    @pytest.mark.asyncio
    @respx.mock
    async def test_requests_carry_user_token(self, client, token):
        route = respx.get(f"{REST}/links").respond(200, json=[])

        await client.select("links", filters={"user_id": "u1"})
        token["value"] = None
        await client.select("links", filters={"user_id": "u1"})

        first, second = route.calls
        assert first.request.headers["Authorization"] == "Bearer user-jwt"
        # Falls back to the anon key when signed out
        assert second.request.headers["Authorization"] == "Bearer anon-key"
        assert second.request.headers["apikey"] == "anon-key"

    @pytest.mark.asyncio
    @respx.mock
    async def test_select_one_returns_first_or_none(self, client):
        respx.get(f"{REST}/profiles").mock(
            side_effect=[
                httpx.Response(200, json=[{"id": "u1", "first_name": "Ada"}]),
                httpx.Response(200, json=[]),
            ]
        )

        assert (await client.select_one("profiles", filters={"id": "u1"}))["first_name"] == "Ada"
        assert await client.select_one("profiles", filters={"id": "u2"}) is None

    @pytest.mark.asyncio
    @respx.mock
    async def test_insert_returns_representation(self, client):
        route = respx.post(f"{REST}/links").respond(
            201, json=[{"id": "1", "title": "Docs", "user_id": "u1"}]
        )

        row = await client.insert("links", {"title": "Docs", "user_id": "u1"})

        assert row["id"] == "1"
        request = route.calls.last.request
        assert request.headers["Prefer"] == "return=representation"
        assert json.loads(request.content) == {"title": "Docs", "user_id": "u1"}

    @pytest.mark.asyncio
    @respx.mock
    async def test_update_scoped_by_id_and_owner(self, client):
        route = respx.patch(f"{REST}/links").respond(200, json=[{"id": "1"}])

        await client.update("links", {"title": "New"}, filters={"id": "1", "user_id": "u1"})

        params = route.calls.last.request.url.params
        assert params["id"] == "eq.1"
        assert params["user_id"] == "eq.u1"

    @pytest.mark.asyncio
    @respx.mock
    async def test_upsert_merges_on_conflict(self, client):
        route = respx.post(f"{REST}/profiles").respond(201, json=[{"id": "u1"}])

        await client.upsert("profiles", {"id": "u1", "first_name": "Ada"})

        request = route.calls.last.request
        assert request.url.params["on_conflict"] == "id"
        assert "resolution=merge-duplicates" in request.headers["Prefer"]

    @pytest.mark.asyncio
    @respx.mock
    async def test_delete(self, client):
        route = respx.delete(f"{REST}/links").respond(200, json=[{"id": "1"}])

        assert await client.delete("links", filters={"id": "1", "user_id": "u1"}) == [{"id": "1"}]
        assert route.calls.last.request.url.params["id"] == "eq.1"

    @pytest.mark.asyncio
    @respx.mock
    async def test_error_message_verbatim(self, client):
        respx.post(f"{REST}/links").respond(
            403,
            json={
                "code": "42501",
                "message": 'new row violates row-level security policy for table "links"',
            },
        )

        with pytest.raises(ProviderError) as exc_info:
            await client.insert("links", {"title": "x"})

        assert exc_info.value.message == (
            'new row violates row-level security policy for table "links"'
        )
        assert exc_info.value.code == "42501"
        assert exc_info.value.status_code == 403

    @pytest.mark.asyncio
    @respx.mock
    async def test_non_json_body_is_provider_error(self, client):
        respx.get(f"{REST}/links").respond(200, text="<html>Bad gateway</html>")

        with pytest.raises(ProviderError) as exc_info:
            await client.select("links", filters={"user_id": "u1"})

        assert exc_info.value.code == "E_INVALID_RESPONSE"
        assert exc_info.value.status_code == 200
