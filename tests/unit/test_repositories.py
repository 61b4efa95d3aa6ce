"""Tests for repositories against a mocked asyncpg connection."""

from datetime import datetime, timedelta, timezone

import asyncpg
import pytest

from utm_connect.core.exceptions import ConflictError, DatabaseNotConnectedError, ValidationError
from utm_connect.models.database import Database
from utm_connect.repositories import (
    ConversationRepository,
    LinkRepository,
    PostRepository,
    RefreshTokenRepository,
    UserRepository,
)

NOW = datetime(2026, 10, 17, 12, 0, tzinfo=timezone.utc)


def user_row(**overrides):
    row = {
        "id": "user-1",
        "email": "a@x.com",
        "name": "Alice",
        "password": "$2b$04$hash",
        "phone_number": None,
        "university_group": "FAF-211",
        "role": 0,
        "friend_ids": [],
        "friend_requests_sent": [],
        "friend_requests_received": [],
        "photo_urls": [],
        "primary_photo_url": None,
        "joined_at": NOW,
        "created_at": NOW,
        "updated_at": NOW,
    }
    row.update(overrides)
    return row


def link_row(**overrides):
    row = {
        "id": "link-1",
        "original_url": "https://example.com/?utm_source=x",
        "short_code": "abc",
        "campaign_id": None,
        "user_id": "user-1",
        "clicks": 1,
        "created_at": NOW,
        "updated_at": NOW,
    }
    row.update(overrides)
    return row


class TestUserRepository:
    async def test_get_by_id_maps_row(self, mock_db, mock_conn):
        mock_conn.fetchrow.return_value = user_row()

        user = await UserRepository(mock_db).get_by_id("user-1")

        assert user.id == "user-1"
        assert user.university_group == "FAF-211"
        assert "password" not in user.to_dict()
        assert user.to_dict(include_password=True)["password"] == "$2b$04$hash"

    async def test_get_by_id_missing(self, mock_db, mock_conn):
        mock_conn.fetchrow.return_value = None
        assert await UserRepository(mock_db).get_by_id("nope") is None

    async def test_get_by_email_is_case_insensitive(self, mock_db, mock_conn):
        mock_conn.fetchrow.return_value = user_row()

        await UserRepository(mock_db).get_by_email("A@X.com")

        query = mock_conn.fetchrow.call_args.args[0]
        assert "lower(email) = lower($1)" in query

    async def test_create_requires_fields(self, mock_db, mock_conn):
        with pytest.raises(ValidationError, match="password is required"):
            await UserRepository(mock_db).create({"email": "a@x.com", "name": "A"})
        mock_conn.fetchrow.assert_not_called()

    async def test_create_unique_violation_is_conflict(self, mock_db, mock_conn):
        mock_conn.fetchrow.side_effect = asyncpg.UniqueViolationError("duplicate key")

        with pytest.raises(ConflictError, match="email already registered"):
            await UserRepository(mock_db).create(
                {"email": "a@x.com", "name": "A", "password": "hash"}
            )

    async def test_create_generates_string_id(self, mock_db, mock_conn):
        mock_conn.fetchrow.return_value = user_row()

        await UserRepository(mock_db).create({"email": "a@x.com", "name": "A", "password": "h"})

        generated_id = mock_conn.fetchrow.call_args.args[1]
        assert isinstance(generated_id, str) and len(generated_id) == 36

    async def test_update_rejects_unknown_fields(self, mock_db):
        with pytest.raises(ValidationError, match="Cannot update fields: password"):
            await UserRepository(mock_db).update("user-1", {"password": "x"})

    async def test_delete_parses_command_tag(self, mock_db, mock_conn):
        mock_conn.execute.return_value = "DELETE 1"
        assert await UserRepository(mock_db).delete("user-1") is True

        mock_conn.execute.return_value = "DELETE 0"
        assert await UserRepository(mock_db).delete("user-1") is False

    async def test_friend_request_updates_both_sides_in_transaction(self, mock_db, mock_conn):
        await UserRepository(mock_db).add_friend_request("user-1", "user-2")

        mock_db.transaction.assert_called_once()
        assert mock_conn.execute.await_count == 2
        first, second = mock_conn.execute.call_args_list
        assert first.args[1:] == ("user-1", "user-2")
        assert second.args[1:] == ("user-2", "user-1")


class TestRefreshTokenRepository:
    def test_rows_are_addressed_by_user_only(self):
        public = {name for name in vars(RefreshTokenRepository) if not name.startswith("_")}

        assert public == {"create_row", "find_active", "revoke_all_active", "replace_active"}

    async def test_create_row_inserts_non_revoked(self, mock_db, mock_conn):
        expires = NOW + timedelta(days=7)

        token_id = await RefreshTokenRepository(mock_db).create_row("digest", "user-1", expires)

        query, *args = mock_conn.execute.call_args.args
        assert "INSERT INTO refresh_tokens" in query
        assert "FALSE" in query
        assert args == [token_id, "digest", "user-1", expires]

    async def test_find_active_filters_revoked_and_expired(self, mock_db, mock_conn):
        mock_conn.fetch.return_value = [
            {
                "id": "t1",
                "token_hash": "digest",
                "user_id": "user-1",
                "expires_at": NOW,
                "is_revoked": False,
                "created_at": NOW,
            }
        ]

        [record] = await RefreshTokenRepository(mock_db).find_active("user-1")

        query = mock_conn.fetch.call_args.args[0]
        assert "is_revoked = FALSE" in query
        assert "expires_at > NOW()" in query
        assert record.token_hash == "digest"
        assert "token_hash" not in record.to_dict()

    async def test_revoke_all_active_returns_count(self, mock_db, mock_conn):
        mock_conn.execute.return_value = "UPDATE 3"
        assert await RefreshTokenRepository(mock_db).revoke_all_active("user-1") == 3

    async def test_replace_active_locks_revokes_and_inserts_atomically(self, mock_db, mock_conn):
        mock_conn.execute.return_value = "UPDATE 1"

        await RefreshTokenRepository(mock_db).replace_active("user-1", "digest", NOW)

        mock_db.transaction.assert_called_once()
        mock_db.get_connection.assert_not_called()
        statements = [c.args[0] for c in mock_conn.execute.call_args_list]
        assert "FOR UPDATE" in statements[0]
        assert "SET is_revoked = TRUE" in statements[1]
        assert "INSERT INTO refresh_tokens" in statements[2]


class TestLinkRepository:
    async def test_duplicate_short_code_is_conflict(self, mock_db, mock_conn):
        mock_conn.fetchrow.side_effect = asyncpg.UniqueViolationError("duplicate key")

        with pytest.raises(ConflictError, match="Short code already exists"):
            await LinkRepository(mock_db).create("https://example.com", "abc", "user-1")

    async def test_record_click_increments_and_logs(self, mock_db, mock_conn):
        mock_conn.fetchrow.return_value = link_row(clicks=2)

        link = await LinkRepository(mock_db).record_click("link-1", "UA", "https://ref", "1.2.3.4")

        assert link.clicks == 2
        insert = mock_conn.execute.call_args.args
        assert "INSERT INTO link_analytics" in insert[0]
        assert insert[2:] == ("link-1", "UA", "https://ref", "1.2.3.4")

    async def test_record_click_on_missing_link(self, mock_db, mock_conn):
        mock_conn.fetchrow.return_value = None

        assert await LinkRepository(mock_db).record_click("gone") is None
        mock_conn.execute.assert_not_called()


class TestConversationRepository:
    async def test_get_or_create_sorts_participants(self, mock_db, mock_conn):
        mock_conn.fetchrow.return_value = {
            "id": "c1",
            "participant_ids": ["a", "b"],
            "last_message": None,
            "last_message_at": None,
            "created_at": NOW,
            "updated_at": NOW,
        }

        conversation = await ConversationRepository(mock_db).get_or_create("b", "a")

        assert mock_conn.execute.call_args.args[2] == ["a", "b"]
        assert "ON CONFLICT (participant_ids) DO NOTHING" in mock_conn.execute.call_args.args[0]
        assert conversation.other_participant("a") == "b"

    async def test_mark_read_skips_own_messages(self, mock_db, mock_conn):
        mock_conn.execute.return_value = "UPDATE 4"

        count = await ConversationRepository(mock_db).mark_read("c1", "a")

        assert count == 4
        assert "sender_id <> $2" in mock_conn.execute.call_args.args[0]


class TestPostRepository:
    async def test_get_by_id_attaches_comments(self, mock_db, mock_conn):
        mock_conn.fetchrow.return_value = {
            "id": "p1",
            "user_id": "user-1",
            "description": "hello",
            "photo_urls": [],
            "likes": ["user-2"],
            "created_at": NOW,
            "updated_at": NOW,
        }
        mock_conn.fetch.return_value = [
            {
                "id": "cm1",
                "post_id": "p1",
                "user_id": "user-2",
                "user_name": "Bob",
                "content": "nice",
                "created_at": NOW,
            }
        ]

        post = await PostRepository(mock_db).get_by_id("p1")

        data = post.to_dict()
        assert data["likes"] == ["user-2"]
        assert data["comments"][0]["content"] == "nice"


@pytest.mark.parametrize(
    "tag,expected", [("UPDATE 2", 2), ("INSERT 0 1", 1), ("DELETE 0", 0), ("BEGIN", 0), (None, 0)]
)
def test_command_tag_row_count(tag, expected):
    assert Database._parse_command_tag(tag) == expected


async def test_database_requires_connect():
    db = Database("postgresql://localhost/utm_connect")

    with pytest.raises(DatabaseNotConnectedError):
        async with db.get_connection():
            pass
