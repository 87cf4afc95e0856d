"""Tests for StatTaq account link lookups and deactivation."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, Mock
from uuid import uuid4

import asyncpg
import pytest

from src.database.stattaq_accounts import StatTaqAccountsRepository


def make_row(**overrides):
    row = {
        "id": uuid4(),
        "athlete_id": uuid4(),
        "stattaq_user_id": "st_user_1",
        "stattaq_athlete_id": "st_athlete_1",
        "sync_enabled": False,
        "is_active": False,
        "connected_at": datetime.now(UTC),
        "disconnected_at": datetime.now(UTC),
    }
    row.update(overrides)
    return row


@pytest.fixture
def mock_conn():
    return Mock(spec=asyncpg.Connection)


class TestDeactivate:
    @pytest.mark.asyncio
    async def test_active_link_is_deactivated(self, mock_conn):
        account_id = uuid4()
        mock_conn.fetchrow = AsyncMock(return_value={"id": account_id})

        assert await StatTaqAccountsRepository.deactivate(mock_conn, account_id) is True

        query, *params = mock_conn.fetchrow.call_args.args
        assert params == [account_id]
        assert "is_active = false" in query
        assert "sync_enabled = false" in query
        assert "disconnected_at = NOW()" in query
        assert "WHERE id = $1 AND is_active = true" in query

    @pytest.mark.asyncio
    async def test_already_inactive_returns_false(self, mock_conn):
        mock_conn.fetchrow = AsyncMock(return_value=None)

        assert await StatTaqAccountsRepository.deactivate(mock_conn, uuid4()) is False


class TestLookups:
    @pytest.mark.asyncio
    async def test_get_by_stattaq_user_includes_inactive_links(self, mock_conn):
        mock_conn.fetchrow = AsyncMock(return_value=make_row())

        account = await StatTaqAccountsRepository.get_by_stattaq_user(mock_conn, "st_user_1")

        query, *params = mock_conn.fetchrow.call_args.args
        assert params == ["st_user_1"]
        assert "is_active" not in query.split("WHERE", 1)[1]
        assert account.is_active is False

    @pytest.mark.asyncio
    async def test_get_active_by_stattaq_user_filters_inactive(self, mock_conn):
        mock_conn.fetchrow = AsyncMock(return_value=None)

        account = await StatTaqAccountsRepository.get_active_by_stattaq_user(
            mock_conn, "st_user_1"
        )

        assert account is None
        query = mock_conn.fetchrow.call_args.args[0]
        assert "is_active = true" in query
