"""Tests for the StatTaq webhook processing pipeline."""

import json
from datetime import UTC, datetime
from unittest.mock import AsyncMock, Mock, patch
from uuid import uuid4

import asyncpg
import pytest

from src.clients.supabase import SupabaseDB
from src.database.stattaq_accounts import StatTaqAccount
from src.database.stattaq_webhooks import InboundEvent, RecordResult
from src.ingest.gatekeeper.event_dispatcher import (
    DispatchAction,
    DispatchOutcome,
    EventDispatcher,
)
from src.ingest.gatekeeper.services.webhook_processor import WebhookProcessor
from src.ingest.gatekeeper.verification import VerificationOutcome, VerificationResult
from src.utils.errors import RecordingError

PROCESSOR_MODULE = "src.ingest.gatekeeper.services.webhook_processor"

ATHLETE_ID = uuid4()


def make_body(event_type: str = "stats.updated", webhook_id: str = "evt_123") -> bytes:
    return json.dumps(
        {
            "id": webhook_id,
            "event_type": event_type,
            "created_at": "2025-01-01T00:00:00Z",
            "data": {"stattaq_user_id": "st_user_1"},
        }
    ).encode()


def make_event(processed: bool = False, athlete_id=None, event_type="stats.updated") -> InboundEvent:
    return InboundEvent(
        {
            "id": uuid4(),
            "webhook_id": "evt_123",
            "event_type": event_type,
            "payload": "{}",
            "signature": "sig",
            "stattaq_user_id": "st_user_1",
            "athlete_id": athlete_id,
            "verification_status": "verified",
            "processed": processed,
            "processed_at": None,
            "processing_error": None,
            "received_at": datetime.now(UTC),
        }
    )


def make_account(athlete_id=ATHLETE_ID) -> StatTaqAccount:
    return StatTaqAccount(
        {
            "id": uuid4(),
            "athlete_id": athlete_id,
            "stattaq_user_id": "st_user_1",
            "stattaq_athlete_id": None,
            "sync_enabled": True,
            "is_active": True,
            "connected_at": datetime.now(UTC),
            "disconnected_at": None,
        }
    )


@pytest.fixture
def mock_verifier():
    verifier = Mock()
    verifier.verify = Mock(return_value=VerificationResult(outcome=VerificationOutcome.VERIFIED))
    return verifier


@pytest.fixture
def mock_dispatcher():
    dispatcher = Mock(spec=EventDispatcher)
    dispatcher.dispatch = AsyncMock(
        return_value=DispatchOutcome(action=DispatchAction.SYNC_TRIGGERED)
    )
    return dispatcher


@pytest.fixture
def processor(mock_verifier, mock_dispatcher):
    return WebhookProcessor(
        db=Mock(spec=SupabaseDB), verifier=mock_verifier, dispatcher=mock_dispatcher
    )


@pytest.fixture
def mock_conn():
    return Mock(spec=asyncpg.Connection)


@pytest.fixture
def mock_webhooks_repo():
    with patch(f"{PROCESSOR_MODULE}.StatTaqWebhooksRepository") as repo:
        repo.record = AsyncMock(return_value=RecordResult(make_event(), duplicate=False))
        repo.set_athlete = AsyncMock()
        repo.mark_processed = AsyncMock(return_value=True)
        yield repo


@pytest.fixture
def mock_accounts_repo():
    with patch(f"{PROCESSOR_MODULE}.StatTaqAccountsRepository") as repo:
        repo.get_active_by_stattaq_user = AsyncMock(return_value=make_account())
        yield repo


class TestSignatureHandling:
    @pytest.mark.asyncio
    async def test_rejected_signature_is_not_recorded(
        self, processor, mock_verifier, mock_conn, mock_webhooks_repo, mock_dispatcher
    ):
        mock_verifier.verify.return_value = VerificationResult(
            outcome=VerificationOutcome.REJECTED, error="Invalid StatTaq webhook signature"
        )

        response = await processor.process(mock_conn, {}, make_body())

        assert response.received is True
        assert response.error == "Invalid StatTaq webhook signature"
        mock_webhooks_repo.record.assert_not_called()
        mock_dispatcher.dispatch.assert_not_called()

    @pytest.mark.asyncio
    async def test_skipped_verification_is_recorded_distinguishably(
        self, processor, mock_verifier, mock_conn, mock_webhooks_repo, mock_accounts_repo
    ):
        mock_verifier.verify.return_value = VerificationResult(
            outcome=VerificationOutcome.SKIPPED_UNCONFIGURED,
            error="No signing secret configured for stattaq",
        )

        response = await processor.process(mock_conn, {}, make_body())

        assert response.error is None
        record_kwargs = mock_webhooks_repo.record.call_args.kwargs
        assert record_kwargs["verification_status"] == "skipped_unconfigured"

    @pytest.mark.asyncio
    async def test_signature_header_is_stored(
        self, processor, mock_conn, mock_webhooks_repo, mock_accounts_repo
    ):
        await processor.process(mock_conn, {"x-stattaq-signature": "abc="}, make_body())

        record_kwargs = mock_webhooks_repo.record.call_args.kwargs
        assert record_kwargs["signature"] == "abc="
        assert record_kwargs["verification_status"] == "verified"


class TestPayloadValidation:
    @pytest.mark.asyncio
    async def test_malformed_json_is_acknowledged_with_error(
        self, processor, mock_conn, mock_webhooks_repo
    ):
        response = await processor.process(mock_conn, {}, b"{not json")

        assert response.received is True
        assert response.error == "Invalid webhook payload"
        mock_webhooks_repo.record.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_stattaq_user_id_is_rejected(
        self, processor, mock_conn, mock_webhooks_repo
    ):
        body = json.dumps({"id": "evt_1", "event_type": "stats.updated", "data": {}}).encode()

        response = await processor.process(mock_conn, {}, body)

        assert response.error == "Invalid webhook payload"
        mock_webhooks_repo.record.assert_not_called()


class TestRecordingAndDispatch:
    @pytest.mark.asyncio
    async def test_linked_event_is_annotated_dispatched_and_marked(
        self, processor, mock_conn, mock_webhooks_repo, mock_accounts_repo, mock_dispatcher
    ):
        event = mock_webhooks_repo.record.return_value.event

        response = await processor.process(mock_conn, {}, make_body())

        assert response.received is True
        assert response.error is None
        mock_webhooks_repo.set_athlete.assert_awaited_once_with(mock_conn, event.id, ATHLETE_ID)
        mock_dispatcher.dispatch.assert_awaited_once()
        mock_webhooks_repo.mark_processed.assert_awaited_once_with(mock_conn, event.id, None)

    @pytest.mark.asyncio
    async def test_dispatch_error_is_stored_on_event(
        self, processor, mock_conn, mock_webhooks_repo, mock_accounts_repo, mock_dispatcher
    ):
        mock_dispatcher.dispatch.return_value = DispatchOutcome(
            action=DispatchAction.SYNC_TRIGGER_FAILED, error="HTTP 500"
        )
        event = mock_webhooks_repo.record.return_value.event

        response = await processor.process(mock_conn, {}, make_body())

        assert response.error is None
        mock_webhooks_repo.mark_processed.assert_awaited_once_with(mock_conn, event.id, "HTTP 500")

    @pytest.mark.asyncio
    async def test_already_annotated_event_skips_set_athlete(
        self, processor, mock_conn, mock_webhooks_repo, mock_accounts_repo
    ):
        mock_webhooks_repo.record.return_value = RecordResult(
            make_event(athlete_id=ATHLETE_ID), duplicate=True
        )

        await processor.process(mock_conn, {}, make_body())

        mock_webhooks_repo.set_athlete.assert_not_called()
        mock_webhooks_repo.mark_processed.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_unlinked_account_records_but_does_not_dispatch(
        self, processor, mock_conn, mock_webhooks_repo, mock_accounts_repo, mock_dispatcher
    ):
        mock_accounts_repo.get_active_by_stattaq_user.return_value = None

        response = await processor.process(mock_conn, {}, make_body())

        assert response.received is True
        assert response.error is None
        mock_webhooks_repo.record.assert_awaited_once()
        mock_dispatcher.dispatch.assert_not_called()
        mock_webhooks_repo.mark_processed.assert_not_called()

    @pytest.mark.asyncio
    async def test_processed_duplicate_is_not_dispatched_again(
        self, processor, mock_conn, mock_webhooks_repo, mock_accounts_repo, mock_dispatcher
    ):
        mock_webhooks_repo.record.return_value = RecordResult(
            make_event(processed=True, athlete_id=ATHLETE_ID), duplicate=True
        )

        response = await processor.process(mock_conn, {}, make_body())

        assert response.received is True
        mock_dispatcher.dispatch.assert_not_called()
        mock_webhooks_repo.mark_processed.assert_not_called()

    @pytest.mark.asyncio
    async def test_recording_failure_raises_recording_error(
        self, processor, mock_conn, mock_webhooks_repo, mock_dispatcher
    ):
        mock_webhooks_repo.record.side_effect = OSError("connection lost")

        with pytest.raises(RecordingError):
            await processor.process(mock_conn, {}, make_body())

        mock_dispatcher.dispatch.assert_not_called()

    @pytest.mark.asyncio
    async def test_unrecognized_event_type_is_recorded_and_marked_processed(
        self, mock_verifier, mock_conn, mock_webhooks_repo, mock_accounts_repo
    ):
        sync_client = Mock()
        sync_client.trigger_sync = AsyncMock()
        processor = WebhookProcessor(
            db=Mock(spec=SupabaseDB),
            verifier=mock_verifier,
            dispatcher=EventDispatcher(sync_client),
        )
        event = make_event(event_type="foo.bar")
        mock_webhooks_repo.record.return_value = RecordResult(event, duplicate=False)

        response = await processor.process(mock_conn, {}, make_body(event_type="foo.bar"))

        assert response.error is None
        assert mock_webhooks_repo.record.call_args.kwargs["event_type"] == "foo.bar"
        sync_client.trigger_sync.assert_not_called()
        mock_webhooks_repo.mark_processed.assert_awaited_once_with(mock_conn, event.id, None)


class TestHealthCheck:
    @pytest.mark.asyncio
    async def test_healthy_when_database_and_redis_respond(self, processor):
        processor.db.ping = AsyncMock(return_value=True)

        with patch(f"{PROCESSOR_MODULE}.redis_ping", AsyncMock(return_value=True)):
            health = await processor.health_check()

        assert health == {
            "status": "healthy",
            "components": {"database": "healthy", "redis": "healthy"},
        }

    @pytest.mark.asyncio
    async def test_unhealthy_when_database_unreachable(self, processor):
        processor.db.ping = AsyncMock(side_effect=OSError("connection refused"))

        with patch(f"{PROCESSOR_MODULE}.redis_ping", AsyncMock(return_value=True)):
            health = await processor.health_check()

        assert health["status"] == "unhealthy"
        assert health["components"]["database"].startswith("unhealthy")
