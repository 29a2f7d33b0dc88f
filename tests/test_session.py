import asyncio

import pytest
from unittest.mock import AsyncMock

from cryptosi.services.session import FormSession, SessionStore
from cryptosi.utils.errors import (
    FormValidationError,
    GenerationInProgressError,
    ProtocolError,
    TransportError,
)

from tests._helpers import TEST_API_KEY


@pytest.fixture
def session():
    return FormSession(session_id="test")


def fake_client(**kwargs):
    client = AsyncMock()
    client.generate = AsyncMock(**kwargs)
    return client


@pytest.mark.asyncio
async def test_empty_prompt_never_calls_api(session):
    client = fake_client(return_value="data:image/jpeg;base64,QUJD")

    with pytest.raises(FormValidationError):
        await session.generate(TEST_API_KEY, client=client)

    client.generate.assert_not_awaited()
    assert session.notifications[-1].status == "error"
    assert session.notifications[-1].description == "Please enter a prompt"
    assert not session.is_loading


@pytest.mark.asyncio
async def test_controlnet_without_reference_never_calls_api(session):
    client = fake_client(return_value="data:image/jpeg;base64,QUJD")
    session.state.set_prompt_text("a lighthouse")
    session.state.set_model("SDXL-ControlNet")

    with pytest.raises(FormValidationError):
        await session.generate(TEST_API_KEY, client=client)

    client.generate.assert_not_awaited()


@pytest.mark.asyncio
async def test_missing_key_never_calls_api(session):
    client = fake_client(return_value="data:image/jpeg;base64,QUJD")
    session.state.set_prompt_text("a lighthouse")

    with pytest.raises(FormValidationError):
        await session.generate(None, client=client)

    client.generate.assert_not_awaited()


@pytest.mark.asyncio
async def test_success_stores_result(session):
    client = fake_client(return_value="data:image/jpeg;base64,QUJD")
    session.state.set_prompt_text("a lighthouse")

    result = await session.generate(TEST_API_KEY, origin="https://cryptosi.example", client=client)

    assert result == "data:image/jpeg;base64,QUJD"
    assert session.result == result
    assert not session.is_loading
    assert session.notifications[-1].status == "success"
    client.generate.assert_awaited_once()
    assert client.generate.call_args.kwargs["origin"] == "https://cryptosi.example"


@pytest.mark.asyncio
@pytest.mark.parametrize("error", [
    ProtocolError("Failed to generate image. Please try again."),
    TransportError("Rate limit exceeded", upstream_status=429),
])
async def test_failure_keeps_previous_result(session, error):
    session.result = "data:image/jpeg;base64,T0xE"
    session.state.set_prompt_text("a lighthouse")
    client = fake_client(side_effect=error)

    with pytest.raises(type(error)):
        await session.generate(TEST_API_KEY, client=client)

    assert session.result == "data:image/jpeg;base64,T0xE"
    assert not session.is_loading
    assert session.notifications[-1].description == error.message
    assert session.notifications[-1].duration == 5000


@pytest.mark.asyncio
async def test_unexpected_error_still_clears_loading(session):
    session.state.set_prompt_text("a lighthouse")
    client = fake_client(side_effect=RuntimeError("boom"))

    with pytest.raises(RuntimeError):
        await session.generate(TEST_API_KEY, client=client)

    assert not session.is_loading


@pytest.mark.asyncio
async def test_second_submission_rejected_while_in_flight(session):
    session.state.set_prompt_text("a lighthouse")
    release = asyncio.Event()

    async def slow_generate(*args, **kwargs):
        await release.wait()
        return "data:image/jpeg;base64,QUJD"

    client = fake_client(side_effect=slow_generate)
    first = asyncio.create_task(session.generate(TEST_API_KEY, client=client))
    await asyncio.sleep(0)
    assert session.is_loading

    with pytest.raises(GenerationInProgressError):
        await session.generate(TEST_API_KEY, client=client)

    release.set()
    await first
    assert client.generate.await_count == 1
    assert not session.is_loading


@pytest.mark.asyncio
async def test_flux_negative_prompt_warning_is_recorded(session):
    session.state.set_prompt_text("a lighthouse")
    session.state.set_negative_prompt("blurry")
    session.state.set_model("FLUX.1-dev")
    client = fake_client(return_value="data:image/jpeg;base64,QUJD")

    await session.generate(TEST_API_KEY, client=client)

    statuses = [n.status for n in session.notifications]
    assert statuses == ["warning", "success"]
    payload = client.generate.call_args.args[0]
    assert payload.negative_prompt is None


def test_dismiss_notification(session):
    first = session.notify("Error", "one", "error")
    second = session.notify("Error", "two", "error")
    session.dismiss(first.id)
    assert [n.id for n in session.notifications] == [second.id]


def test_snapshot_reflects_capabilities(session):
    session.state.set_model("SD1.5-ControlNet")
    snapshot = session.snapshot()
    assert snapshot.capabilities["is_controlnet"] is True
    assert snapshot.capabilities["required_fields"] == ["controlnet_image", "prompt"]
    assert len(snapshot.models) == 8
    assert snapshot.result is None


def test_session_store_reuses_known_ids():
    store = SessionStore()
    created = store.get_or_create(None)
    assert store.get_or_create(created.session_id) is created
    assert store.get_or_create("unknown").session_id != "unknown"
    assert len(store) == 2


def test_session_store_evicts_least_recently_used():
    store = SessionStore(max_sessions=2)
    first = store.get_or_create(None)
    second = store.get_or_create(None)
    # Touching the first session makes the second one the oldest
    store.get_or_create(first.session_id)
    third = store.get_or_create(None)

    assert len(store) == 2
    assert first.session_id in store
    assert third.session_id in store
    assert second.session_id not in store


def test_session_store_limit_comes_from_settings(monkeypatch):
    from cryptosi.config import get_settings

    monkeypatch.setenv("MAX_SESSIONS", "3")
    get_settings.cache_clear()
    store = SessionStore()
    for _ in range(10):
        store.get_or_create(None)

    assert len(store) == 3
