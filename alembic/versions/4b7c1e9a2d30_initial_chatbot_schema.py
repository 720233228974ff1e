"""initial chatbot schema

Revision ID: 4b7c1e9a2d30
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "4b7c1e9a2d30"
down_revision = None
branch_labels = None
depends_on = None


user_role = sa.Enum("admin", "agent", name="userrole")
support_status = sa.Enum("pending", "active", "closed", name="supportstatus")


def upgrade() -> None:
    op.create_table(
        "app_user",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("username", sa.String(length=150), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("role", user_role, nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
    )
    op.create_index(
        "ix_app_user_username", "app_user", ["username"], unique=True
    )

    op.create_table(
        "client",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("category", sa.String(length=255), nullable=False),
        sa.Column("logo", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("primary_color", sa.String(length=20), nullable=False),
        sa.Column("secondary_color", sa.String(length=20), nullable=False),
        sa.Column("chat_title", sa.String(length=255), nullable=False),
        sa.Column("welcome_message", sa.Text(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(
            ["user_id"], ["app_user.id"], ondelete="SET NULL"
        ),
    )

    op.create_table(
        "statistic",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("client_id", sa.Integer(), nullable=False),
        sa.Column("message_count", sa.Integer(), nullable=False),
        sa.Column("user_count", sa.Integer(), nullable=False),
        sa.Column("support_request_count", sa.Integer(), nullable=False),
        sa.Column("date", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(
            ["client_id"], ["client.id"], ondelete="CASCADE"
        ),
    )
    op.create_index(
        "ix_statistic_client_id", "statistic", ["client_id"], unique=True
    )

    op.create_table(
        "chatsession",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("client_id", sa.Integer(), nullable=True),
        sa.Column("session_token", sa.String(length=64), nullable=False),
        sa.Column("phone_number", sa.String(length=20), nullable=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("last_active", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ["client_id"], ["client.id"], ondelete="SET NULL"
        ),
    )
    op.create_index(
        "ix_chatsession_client_id", "chatsession", ["client_id"]
    )
    op.create_index(
        "ix_chatsession_session_token",
        "chatsession",
        ["session_token"],
        unique=True,
    )

    op.create_table(
        "chatmessage",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("session_id", sa.Integer(), nullable=True),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("is_user_message", sa.Boolean(), nullable=False),
        sa.Column("needs_support", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ["session_id"], ["chatsession.id"], ondelete="CASCADE"
        ),
    )
    op.create_index(
        "ix_chatmessage_session_id", "chatmessage", ["session_id"]
    )

    op.create_table(
        "customresponse",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("client_id", sa.Integer(), nullable=False),
        sa.Column("keyword", sa.String(length=255), nullable=False),
        sa.Column("response", sa.Text(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ["client_id"], ["client.id"], ondelete="CASCADE"
        ),
    )
    op.create_index(
        "ix_customresponse_client_id", "customresponse", ["client_id"]
    )

    op.create_table(
        "supportagent",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("is_available", sa.Boolean(), nullable=False),
        sa.Column("last_active", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(
            ["user_id"], ["app_user.id"], ondelete="CASCADE"
        ),
    )
    op.create_index(
        "ix_supportagent_user_id", "supportagent", ["user_id"]
    )

    op.create_table(
        "supportchat",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("client_id", sa.Integer(), nullable=True),
        sa.Column("session_id", sa.Integer(), nullable=True),
        sa.Column("agent_id", sa.Integer(), nullable=True),
        sa.Column("status", support_status, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("resolved_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(
            ["client_id"], ["client.id"], ondelete="SET NULL"
        ),
        sa.ForeignKeyConstraint(
            ["session_id"], ["chatsession.id"], ondelete="SET NULL"
        ),
        sa.ForeignKeyConstraint(
            ["agent_id"], ["supportagent.id"], ondelete="SET NULL"
        ),
    )
    op.create_index(
        "ix_supportchat_client_id", "supportchat", ["client_id"]
    )
    op.create_index(
        "ix_supportchat_session_id", "supportchat", ["session_id"]
    )
    op.create_index(
        "ix_supportchat_agent_id", "supportchat", ["agent_id"]
    )
    op.create_index(
        "uq_supportchat_open_session",
        "supportchat",
        ["session_id"],
        unique=True,
        postgresql_where=sa.text("status != 'closed'"),
        sqlite_where=sa.text("status != 'closed'"),
    )

    op.create_table(
        "supportmessage",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("chat_id", sa.Integer(), nullable=False),
        sa.Column("sender_id", sa.Integer(), nullable=True),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("is_read", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(
            ["chat_id"], ["supportchat.id"], ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(
            ["sender_id"], ["app_user.id"], ondelete="SET NULL"
        ),
    )
    op.create_index(
        "ix_supportmessage_chat_id", "supportmessage", ["chat_id"]
    )
    op.create_index(
        "ix_supportmessage_sender_id", "supportmessage", ["sender_id"]
    )


def downgrade() -> None:
    op.drop_index(
        "ix_supportmessage_sender_id", table_name="supportmessage"
    )
    op.drop_index("ix_supportmessage_chat_id", table_name="supportmessage")
    op.drop_table("supportmessage")
    op.drop_index(
        "uq_supportchat_open_session", table_name="supportchat"
    )
    op.drop_index("ix_supportchat_agent_id", table_name="supportchat")
    op.drop_index("ix_supportchat_session_id", table_name="supportchat")
    op.drop_index("ix_supportchat_client_id", table_name="supportchat")
    op.drop_table("supportchat")
    op.drop_index("ix_supportagent_user_id", table_name="supportagent")
    op.drop_table("supportagent")
    op.drop_index(
        "ix_customresponse_client_id", table_name="customresponse"
    )
    op.drop_table("customresponse")
    op.drop_index("ix_chatmessage_session_id", table_name="chatmessage")
    op.drop_table("chatmessage")
    op.drop_index(
        "ix_chatsession_session_token", table_name="chatsession"
    )
    op.drop_index("ix_chatsession_client_id", table_name="chatsession")
    op.drop_table("chatsession")
    op.drop_index("ix_statistic_client_id", table_name="statistic")
    op.drop_table("statistic")
    op.drop_table("client")
    op.drop_index("ix_app_user_username", table_name="app_user")
    op.drop_table("app_user")
    op.execute("DROP TYPE IF EXISTS supportstatus")
    op.execute("DROP TYPE IF EXISTS userrole")
