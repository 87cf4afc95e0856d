"""Tests for the athletic-director verification gate."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest

from src.database.athletes import Athlete
from src.database.notifications import NotificationType
from src.utils.errors import AuthorizationError, NotFoundError, PermissionDeniedError, ScopeError
from src.verification.models import (
    ReviewerPermission,
    VerificationClaim,
    VerificationDecisionRequest,
    VerificationStatus,
    VerificationType,
)
from src.verification.service import VerificationService, build_decision_notification

SERVICE_MODULE = "src.verification.service"

SCHOOL_ID = uuid4()
REVIEWER_PROFILE_ID = uuid4()
ATHLETE_ID = uuid4()
ATHLETE_PROFILE_ID = uuid4()


def make_reviewer(**flags) -> ReviewerPermission:
    return ReviewerPermission(
        id=uuid4(), profile_id=REVIEWER_PROFILE_ID, school_id=SCHOOL_ID, **flags
    )


def make_athlete(school_id=SCHOOL_ID) -> Athlete:
    return Athlete({"id": ATHLETE_ID, "profile_id": ATHLETE_PROFILE_ID, "school_id": school_id})


def make_decision(
    verification_type=VerificationType.SPORT,
    status=VerificationStatus.APPROVED,
    rejection_reason=None,
) -> VerificationDecisionRequest:
    return VerificationDecisionRequest(
        athlete_id=ATHLETE_ID,
        verification_type=verification_type,
        status=status,
        notes="Checked roster",
        rejection_reason=rejection_reason,
    )


@pytest.fixture
def mock_conn():
    conn = MagicMock()
    mock_transaction = MagicMock()
    mock_transaction.__aenter__ = AsyncMock()
    mock_transaction.__aexit__ = AsyncMock(return_value=False)
    conn.transaction = MagicMock(return_value=mock_transaction)
    return conn


@pytest.fixture
def repos():
    """Patch every repository the service touches and return them by name."""
    with (
        patch(f"{SERVICE_MODULE}.AthleticDirectorsRepository") as directors,
        patch(f"{SERVICE_MODULE}.AthletesRepository") as athletes,
        patch(f"{SERVICE_MODULE}.VerificationRequestsRepository") as requests,
        patch(f"{SERVICE_MODULE}.NotificationsRepository") as notifications,
        patch(f"{SERVICE_MODULE}.ActivityLogRepository") as activity,
    ):
        directors.get_permissions = AsyncMock(return_value=make_reviewer(can_verify_sport=True))
        athletes.get_by_id = AsyncMock(return_value=make_athlete())
        athletes.set_claim = AsyncMock(
            side_effect=lambda conn, athlete_id, verification_type, verified: VerificationClaim(
                athlete_id=athlete_id,
                verification_type=verification_type,
                verified=verified,
                verified_at=datetime.now(UTC) if verified else None,
            )
        )
        requests.close_pending = AsyncMock(return_value=uuid4())
        notifications.create = AsyncMock(return_value=uuid4())
        activity.append = AsyncMock(return_value=uuid4())
        yield {
            "directors": directors,
            "athletes": athletes,
            "requests": requests,
            "notifications": notifications,
            "activity": activity,
        }


def assert_nothing_written(repos, mock_conn):
    repos["athletes"].set_claim.assert_not_called()
    repos["requests"].close_pending.assert_not_called()
    repos["notifications"].create.assert_not_called()
    repos["activity"].append.assert_not_called()
    mock_conn.transaction.assert_not_called()


class TestReviewerPermission:
    def test_identity_is_never_verifiable(self):
        reviewer = make_reviewer(
            can_verify_enrollment=True, can_verify_sport=True, can_verify_grades=True
        )

        assert reviewer.can_verify(VerificationType.IDENTITY) is False

    def test_flags_map_to_claim_types(self):
        reviewer = make_reviewer(can_verify_grades=True)

        assert reviewer.can_verify(VerificationType.GRADES) is True
        assert reviewer.can_verify(VerificationType.ENROLLMENT) is False
        assert reviewer.can_verify(VerificationType.SPORT) is False


class TestAuthorization:
    @pytest.mark.asyncio
    async def test_non_director_is_rejected(self, repos, mock_conn):
        repos["directors"].get_permissions.return_value = None

        with pytest.raises(AuthorizationError, match="User is not an athletic director"):
            await VerificationService.apply_decision(mock_conn, REVIEWER_PROFILE_ID, make_decision())

        assert_nothing_written(repos, mock_conn)

    @pytest.mark.asyncio
    async def test_missing_capability_flag_is_rejected(self, repos, mock_conn):
        repos["directors"].get_permissions.return_value = make_reviewer(
            can_verify_enrollment=False, can_verify_sport=True
        )

        with pytest.raises(
            PermissionDeniedError, match="You don't have permission to verify enrollment"
        ):
            await VerificationService.apply_decision(
                mock_conn,
                REVIEWER_PROFILE_ID,
                make_decision(verification_type=VerificationType.ENROLLMENT),
            )

        assert_nothing_written(repos, mock_conn)

    @pytest.mark.asyncio
    async def test_identity_always_denied(self, repos, mock_conn):
        repos["directors"].get_permissions.return_value = make_reviewer(
            can_verify_enrollment=True, can_verify_sport=True, can_verify_grades=True
        )

        with pytest.raises(PermissionDeniedError):
            await VerificationService.apply_decision(
                mock_conn,
                REVIEWER_PROFILE_ID,
                make_decision(verification_type=VerificationType.IDENTITY),
            )

        assert_nothing_written(repos, mock_conn)

    @pytest.mark.asyncio
    async def test_unknown_athlete_is_rejected(self, repos, mock_conn):
        repos["athletes"].get_by_id.return_value = None

        with pytest.raises(NotFoundError, match="Athlete not found"):
            await VerificationService.apply_decision(mock_conn, REVIEWER_PROFILE_ID, make_decision())

        assert_nothing_written(repos, mock_conn)

    @pytest.mark.asyncio
    async def test_athlete_at_other_school_is_rejected(self, repos, mock_conn):
        repos["athletes"].get_by_id.return_value = make_athlete(school_id=uuid4())

        with pytest.raises(ScopeError, match="Athlete is not at your school"):
            await VerificationService.apply_decision(mock_conn, REVIEWER_PROFILE_ID, make_decision())

        assert_nothing_written(repos, mock_conn)

    @pytest.mark.asyncio
    async def test_athlete_without_school_is_out_of_scope(self, repos, mock_conn):
        repos["athletes"].get_by_id.return_value = make_athlete(school_id=None)

        with pytest.raises(ScopeError):
            await VerificationService.apply_decision(mock_conn, REVIEWER_PROFILE_ID, make_decision())


class TestApplyDecision:
    @pytest.mark.asyncio
    async def test_sport_approval_sets_claim_closes_request_and_notifies(self, repos, mock_conn):
        request_id = repos["requests"].close_pending.return_value

        claim = await VerificationService.apply_decision(
            mock_conn, REVIEWER_PROFILE_ID, make_decision()
        )

        assert claim.verified is True
        assert claim.verified_at is not None
        repos["athletes"].set_claim.assert_awaited_once_with(
            mock_conn, ATHLETE_ID, VerificationType.SPORT, verified=True
        )

        close_kwargs = repos["requests"].close_pending.call_args.kwargs
        assert close_kwargs["status"] == VerificationStatus.APPROVED
        assert close_kwargs["reviewer_profile_id"] == REVIEWER_PROFILE_ID
        assert close_kwargs["notes"] == "Checked roster"

        repos["notifications"].create.assert_awaited_once()
        notification = repos["notifications"].create.call_args.args[1]
        assert notification.user_id == ATHLETE_PROFILE_ID
        assert notification.type == NotificationType.VERIFICATION_UPDATE
        assert notification.title == "Sport Verification Approved"

        activity_kwargs = repos["activity"].append.call_args.kwargs
        assert activity_kwargs["action"] == "athlete_sport_approved"
        assert activity_kwargs["user_id"] == REVIEWER_PROFILE_ID
        assert activity_kwargs["metadata"]["verification_request_id"] == str(request_id)
        mock_conn.transaction.assert_called_once()

    @pytest.mark.asyncio
    async def test_rejection_revokes_claim(self, repos, mock_conn):
        decision = make_decision(
            status=VerificationStatus.REJECTED, rejection_reason="Not on the roster."
        )

        claim = await VerificationService.apply_decision(mock_conn, REVIEWER_PROFILE_ID, decision)

        assert claim.verified is False
        assert claim.verified_at is None
        repos["athletes"].set_claim.assert_awaited_once_with(
            mock_conn, ATHLETE_ID, VerificationType.SPORT, verified=False
        )
        notification = repos["notifications"].create.call_args.args[1]
        assert notification.title == "Sport Verification Update"
        assert notification.body == "Your sport verification needs attention. Not on the roster."
        assert repos["activity"].append.call_args.kwargs["action"] == "athlete_sport_rejected"

    @pytest.mark.asyncio
    async def test_decision_without_pending_request_still_notifies(self, repos, mock_conn):
        repos["requests"].close_pending.return_value = None

        await VerificationService.apply_decision(mock_conn, REVIEWER_PROFILE_ID, make_decision())

        repos["notifications"].create.assert_awaited_once()
        metadata = repos["activity"].append.call_args.kwargs["metadata"]
        assert metadata["verification_request_id"] is None


class TestBuildDecisionNotification:
    def test_approved_body(self):
        notification = build_decision_notification(
            make_athlete(), make_decision(verification_type=VerificationType.GRADES)
        )

        assert notification.body == "Your grades has been verified!"
        assert notification.related_type == "athlete"
        assert notification.related_id == ATHLETE_ID

    def test_rejected_without_reason(self):
        notification = build_decision_notification(
            make_athlete(), make_decision(status=VerificationStatus.REJECTED)
        )

        assert notification.body == "Your sport verification needs attention."
