"""SQLAlchemy metadata definitions for account and session tables."""

from __future__ import annotations

import sqlalchemy as sa

metadata = sa.MetaData()
sqlite_bigint = sa.BigInteger().with_variant(sa.Integer(), "sqlite")

users = sa.Table(
    "users",
    metadata,
    sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
    sa.Column("username", sa.Text(), nullable=False),
    sa.Column("password_hash", sa.Text(), nullable=False),
    sa.Column(
        "created_at",
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=sa.text("CURRENT_TIMESTAMP"),
    ),
    sa.Column("last_login", sa.DateTime(timezone=True), nullable=True),
    sa.UniqueConstraint("username", name="uq_users_username"),
    sa.CheckConstraint(
        "length(username) BETWEEN 3 AND 30",
        name="ck_users_username_length",
    ),
)

auth_tokens = sa.Table(
    "auth_tokens",
    metadata,
    sa.Column("id", sqlite_bigint, primary_key=True, autoincrement=True),
    sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id"), nullable=False),
    sa.Column("token_hash", sa.Text(), nullable=False),
    sa.Column(
        "issued_at",
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=sa.text("CURRENT_TIMESTAMP"),
    ),
    sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
    sa.UniqueConstraint("token_hash", name="uq_auth_tokens_token_hash"),
)
sa.Index("ix_auth_tokens_user_id", auth_tokens.c.user_id)
sa.Index("ix_auth_tokens_expires_at", auth_tokens.c.expires_at)
