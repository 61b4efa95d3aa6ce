"""Baseline migration - initial schema

Revision ID: 001
Revises:
Create Date: 2026-10-17 09:00:00.000000

Creates every table, index and trigger the repositories rely on.
IDs are application-generated UUID strings.
"""
from typing import Sequence, Union

from alembic import op


# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create complete database schema with all tables, indexes, and triggers."""

    # Create users table
    op.execute("""
        CREATE TABLE IF NOT EXISTS users (
            id TEXT PRIMARY KEY,
            email TEXT NOT NULL,
            name TEXT NOT NULL,
            password TEXT NOT NULL,
            phone_number TEXT,
            university_group TEXT,
            role SMALLINT NOT NULL DEFAULT 0 CHECK (role IN (0, 1, 2)),
            friend_ids TEXT[] NOT NULL DEFAULT '{}',
            friend_requests_sent TEXT[] NOT NULL DEFAULT '{}',
            friend_requests_received TEXT[] NOT NULL DEFAULT '{}',
            photo_urls TEXT[] NOT NULL DEFAULT '{}',
            primary_photo_url TEXT,
            joined_at TIMESTAMPTZ DEFAULT NOW(),
            created_at TIMESTAMPTZ DEFAULT NOW(),
            updated_at TIMESTAMPTZ DEFAULT NOW()
        )
    """)
    # Emails are unique regardless of case
    op.execute("CREATE UNIQUE INDEX IF NOT EXISTS idx_users_email_lower ON users (lower(email))")

    # Create refresh_tokens table (only SHA-256 digests are stored)
    op.execute("""
        CREATE TABLE IF NOT EXISTS refresh_tokens (
            id TEXT PRIMARY KEY,
            token_hash TEXT NOT NULL,
            user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            expires_at TIMESTAMPTZ NOT NULL,
            is_revoked BOOLEAN NOT NULL DEFAULT FALSE,
            created_at TIMESTAMPTZ DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_refresh_tokens_user_active
        ON refresh_tokens (user_id) WHERE is_revoked = FALSE
    """)
    op.execute(
        "CREATE INDEX IF NOT EXISTS idx_refresh_tokens_token_hash ON refresh_tokens (token_hash)"
    )

    # Create groups table
    op.execute("""
        CREATE TABLE IF NOT EXISTS groups (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            user_ids TEXT[] NOT NULL DEFAULT '{}',
            created_at TIMESTAMPTZ DEFAULT NOW(),
            updated_at TIMESTAMPTZ DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS idx_groups_user_ids ON groups USING GIN (user_ids)")

    # Create posts and post_comments tables
    op.execute("""
        CREATE TABLE IF NOT EXISTS posts (
            id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            description TEXT,
            photo_urls TEXT[] NOT NULL DEFAULT '{}',
            likes TEXT[] NOT NULL DEFAULT '{}',
            created_at TIMESTAMPTZ DEFAULT NOW(),
            updated_at TIMESTAMPTZ DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS idx_posts_user_id ON posts (user_id, created_at DESC)")

    op.execute("""
        CREATE TABLE IF NOT EXISTS post_comments (
            id TEXT PRIMARY KEY,
            post_id TEXT NOT NULL REFERENCES posts(id) ON DELETE CASCADE,
            user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            user_name TEXT NOT NULL,
            content TEXT NOT NULL,
            created_at TIMESTAMPTZ DEFAULT NOW()
        )
    """)
    op.execute(
        "CREATE INDEX IF NOT EXISTS idx_post_comments_post_id ON post_comments (post_id, created_at)"
    )

    # Create conversations and messages tables
    op.execute("""
        CREATE TABLE IF NOT EXISTS conversations (
            id TEXT PRIMARY KEY,
            participant_ids TEXT[] NOT NULL,
            last_message TEXT,
            last_message_at TIMESTAMPTZ,
            created_at TIMESTAMPTZ DEFAULT NOW(),
            updated_at TIMESTAMPTZ DEFAULT NOW(),
            CHECK (cardinality(participant_ids) = 2)
        )
    """)
    # participant_ids is stored sorted, so one row per pair
    op.execute("""
        CREATE UNIQUE INDEX IF NOT EXISTS idx_conversations_participants
        ON conversations (participant_ids)
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_conversations_participants_gin
        ON conversations USING GIN (participant_ids)
    """)

    op.execute("""
        CREATE TABLE IF NOT EXISTS messages (
            id TEXT PRIMARY KEY,
            conversation_id TEXT NOT NULL REFERENCES conversations(id) ON DELETE CASCADE,
            sender_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            text TEXT NOT NULL,
            is_read BOOLEAN NOT NULL DEFAULT FALSE,
            created_at TIMESTAMPTZ DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_messages_conversation
        ON messages (conversation_id, created_at)
    """)

    # Create campaigns, links and link_analytics tables
    op.execute("""
        CREATE TABLE IF NOT EXISTS campaigns (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            description TEXT,
            user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            created_at TIMESTAMPTZ DEFAULT NOW(),
            updated_at TIMESTAMPTZ DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS idx_campaigns_user_id ON campaigns (user_id)")

    op.execute("""
        CREATE TABLE IF NOT EXISTS links (
            id TEXT PRIMARY KEY,
            original_url TEXT NOT NULL,
            short_code TEXT NOT NULL UNIQUE,
            campaign_id TEXT REFERENCES campaigns(id) ON DELETE SET NULL,
            user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            clicks INTEGER NOT NULL DEFAULT 0,
            created_at TIMESTAMPTZ DEFAULT NOW(),
            updated_at TIMESTAMPTZ DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS idx_links_user_id ON links (user_id)")
    op.execute("CREATE INDEX IF NOT EXISTS idx_links_campaign_id ON links (campaign_id)")

    op.execute("""
        CREATE TABLE IF NOT EXISTS link_analytics (
            id TEXT PRIMARY KEY,
            link_id TEXT NOT NULL REFERENCES links(id) ON DELETE CASCADE,
            user_agent TEXT,
            referer TEXT,
            ip_address TEXT,
            created_at TIMESTAMPTZ DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_link_analytics_link_id
        ON link_analytics (link_id, created_at DESC)
    """)

    # Trigger function keeping updated_at current
    op.execute("""
        CREATE OR REPLACE FUNCTION update_updated_at_column()
        RETURNS TRIGGER AS $$
        BEGIN
            NEW.updated_at = NOW();
            RETURN NEW;
        END;
        $$ language 'plpgsql';
    """)

    for table in ("users", "groups", "posts", "conversations", "campaigns", "links"):
        op.execute(f"""
            DROP TRIGGER IF EXISTS update_{table}_updated_at ON {table};
            CREATE TRIGGER update_{table}_updated_at
                BEFORE UPDATE ON {table}
                FOR EACH ROW
                EXECUTE FUNCTION update_updated_at_column();
        """)


def downgrade() -> None:
    """Drop all tables in reverse order (respecting foreign key dependencies)."""
    op.execute("DROP TABLE IF EXISTS link_analytics CASCADE")
    op.execute("DROP TABLE IF EXISTS links CASCADE")
    op.execute("DROP TABLE IF EXISTS campaigns CASCADE")
    op.execute("DROP TABLE IF EXISTS messages CASCADE")
    op.execute("DROP TABLE IF EXISTS conversations CASCADE")
    op.execute("DROP TABLE IF EXISTS post_comments CASCADE")
    op.execute("DROP TABLE IF EXISTS posts CASCADE")
    op.execute("DROP TABLE IF EXISTS groups CASCADE")
    op.execute("DROP TABLE IF EXISTS refresh_tokens CASCADE")
    op.execute("DROP TABLE IF EXISTS users CASCADE")
    op.execute("DROP FUNCTION IF EXISTS update_updated_at_column() CASCADE")
