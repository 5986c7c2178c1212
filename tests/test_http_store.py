from __future__ import annotations

import json

import httpx
import pytest

from chatbot_interactions.models import Interaction, RecordType, UserInteraction, get_default_user_interaction_record
from chatbot_interactions.store.http_store import HttpRecordStore
from chatbot_interactions.utils.error_handler import NoActiveRecordError, StoreUnavailableError

STORED = {
    "id": "rec-1",
    "type": "user-interaction",
    "member": {"id": "m-1", "name": "Alice"},
    "creator": {"id": "m-1", "name": "Alice"},
    "createdAt": "2024-01-01T10:00:00Z",
    "data": {"interaction": {"description": "bakery", "started": True}},
    "visibility": "member",
}


def _store(handler) -> tuple[HttpRecordStore, list[httpx.Request]]:
    seen: list[httpx.Request] = []

    def recording(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return handler(request)

    client = httpx.AsyncClient(transport=httpx.MockTransport(recording))
    return HttpRecordStore("https://store.test/api/", token="tok", client=client), seen


@pytest.mark.asyncio
async def test_list_records_sends_type_and_token() -> None:
    store, seen = _store(lambda request: httpx.Response(200, json=[STORED]))

    records = await store.list_records(RecordType.USER_INTERACTION)

    assert [record.id for record in records] == ["rec-1"]
    assert records[0].data.interaction.started is True
    request = seen[0]
    assert request.method == "GET"
    assert request.url.path == "/api/app-data"
    assert request.url.params["type"] == "user-interaction"
    assert request.headers["Authorization"] == "Bearer tok"


@pytest.mark.asyncio
async def test_create_posts_camel_case_payload() -> None:
    store, seen = _store(lambda request: httpx.Response(201, json=STORED))
    payload = UserInteraction(interaction=Interaction(description="bakery", current_exchange=1))

    record = await store.create(get_default_user_interaction_record(payload))

    assert record.id == "rec-1"
    body = json.loads(seen[0].content)
    assert body["type"] == "user-interaction"
    assert body["visibility"] == "member"
    assert body["data"]["interaction"]["currentExchange"] == 1


@pytest.mark.asyncio
async def test_update_patches_record_path() -> None:
    store, seen = _store(lambda request: httpx.Response(200, json=STORED))

    await store.update("rec-1", {"data": {"interaction": {"description": "bakery"}}})

    assert seen[0].method == "PATCH"
    assert seen[0].url.path == "/api/app-data/rec-1"


@pytest.mark.asyncio
async def test_server_error_maps_to_store_unavailable() -> None:
    store, _ = _store(lambda request: httpx.Response(500, text="boom"))

    with pytest.raises(StoreUnavailableError) as excinfo:
        await store.list_records(RecordType.USER_INTERACTION)
    assert excinfo.value.store_status == 500


@pytest.mark.asyncio
async def test_transport_error_maps_to_store_unavailable() -> None:
    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    store, _ = _store(refuse)

    with pytest.raises(StoreUnavailableError):
        await store.create(get_default_user_interaction_record(UserInteraction(interaction=Interaction())))


@pytest.mark.asyncio
async def test_update_of_missing_record() -> None:
    store, _ = _store(lambda request: httpx.Response(404))

    with pytest.raises(NoActiveRecordError):
        await store.update("gone", {})


@pytest.mark.asyncio
async def test_delete_ignores_missing_record() -> None:
    store, seen = _store(lambda request: httpx.Response(404))

    await store.delete("gone")

    assert seen[0].method == "DELETE"
    assert seen[0].url.path == "/api/app-data/gone"


@pytest.mark.asyncio
async def test_get_members_reads_context() -> None:
    store, seen = _store(
        lambda request: httpx.Response(200, json={"members": [{"id": "m-1", "name": "Alice"}]})
    )

    members = await store.get_members()

    assert seen[0].url.path == "/api/context"
    assert [(member.id, member.name) for member in members] == [("m-1", "Alice")]
