"""Tests for the remote portal backends using httpx.MockTransport."""

import json

import httpx
import pytest

from regflow.errors import DraftStoreError, SubmissionTransportError
from regflow.persistence import RemoteDraftStore
from regflow.portal import PortalClient, from_wire_name, to_wire_name
from regflow.services import RemoteSubmissionService


def _client(handler) -> PortalClient:
    return PortalClient(
        "https://portal.example.com/functions/v1",
        api_key="secret",
        transport=httpx.MockTransport(handler),
    )


def test_wire_names():
    assert to_wire_name("personal") == "personalInfo"
    assert to_wire_name("documents") == "documentUpload"
    assert to_wire_name("review") == "review"
    assert from_wire_name("branchSelection") == "branch"
    assert from_wire_name("contact") == "contact"
    assert from_wire_name("mystery") == "mystery"


def test_client_requires_base_url():
    with pytest.raises(ValueError):
        PortalClient("")


@pytest.mark.asyncio
async def test_remote_store_save_posts_wire_payload():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["auth"] = request.headers.get("Authorization")
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"success": True})

    store = RemoteDraftStore(_client(handler))
    await store.save_step("u1", "contact", {"phone": "0501234567"}, [3, 1, 2], 4)

    assert seen["path"] == "/functions/v1/save-registration-draft"
    assert seen["auth"] == "Bearer secret"
    body = seen["body"]
    assert body["userId"] == "u1"
    assert body["stepName"] == "contactInfo"
    assert body["stepData"] == {"phone": "0501234567"}
    assert body["completedSteps"] == [1, 2, 3]
    assert body["currentStep"] == 4
    assert body["updatedAt"]


@pytest.mark.asyncio
async def test_remote_store_load_maps_wire_names():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={
                "success": True,
                "registrationData": {
                    "personalInfo": {"fullName": "Ali"},
                    "addressInfo": {"city": "Riyadh"},
                },
                "completedSteps": [1, 2],
                "currentStep": 3,
            },
        )

    draft = await RemoteDraftStore(_client(handler)).load_draft("u1")
    assert draft.document == {"personal": {"fullName": "Ali"}, "address": {"city": "Riyadh"}}
    assert draft.completed_steps == [1, 2]
    assert draft.current_step == 3


@pytest.mark.asyncio
async def test_remote_store_load_missing_and_errors():
    store = RemoteDraftStore(_client(lambda r: httpx.Response(404, json={"error": "no"})))
    assert await store.load_draft("u1") is None

    store = RemoteDraftStore(_client(lambda r: httpx.Response(500, text="boom")))
    with pytest.raises(DraftStoreError):
        await store.load_draft("u1")

    store = RemoteDraftStore(
        _client(lambda r: httpx.Response(200, json={"success": False, "error": "x"}))
    )
    with pytest.raises(DraftStoreError):
        await store.save_step("u1", "personal", {}, [])


@pytest.mark.asyncio
async def test_remote_store_network_error_wrapped():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("unreachable", request=request)

    with pytest.raises(DraftStoreError):
        await RemoteDraftStore(_client(handler)).load_draft("u1")


@pytest.mark.asyncio
async def test_remote_submission_returns_reference(registration_data):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return httpx.Response(
            200, json={"success": True, "member": {"id": "0f8e-4c1a-9b7d-abcdef12"}}
        )

    service = RemoteSubmissionService(_client(handler))
    document = {key.value: section for key, section in registration_data.items()}
    result = await service.submit("u1", document)

    assert seen["path"].endswith("/submit-registration")
    assert seen["body"]["userId"] == "u1"
    assert set(seen["body"]["registrationData"]) == {
        "personalInfo",
        "professionalInfo",
        "addressInfo",
        "contactInfo",
        "branchSelection",
        "documentUpload",
    }
    assert result.reference_id == "ABCDEF12"
    assert result.status == "pending_review"


@pytest.mark.asyncio
async def test_remote_submission_failure_raises():
    service = RemoteSubmissionService(
        _client(lambda r: httpx.Response(400, json={"success": False, "error": "bad"}))
    )
    with pytest.raises(SubmissionTransportError):
        await service.submit("u1", {})
