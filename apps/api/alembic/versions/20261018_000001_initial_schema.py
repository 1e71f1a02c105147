"""create content repository schema

Revision ID: 20261018_000001
Revises:
Create Date: 2026-10-18 00:00:01.000000
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "20261018_000001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "content_items",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("key", sa.String(length=50), nullable=False),
        sa.Column("content_type", sa.String(), nullable=False),
        sa.Column("title", sa.JSON(), nullable=False),
        sa.Column("description", sa.JSON(), nullable=False),
        sa.Column("subtitle", sa.JSON(), nullable=False),
        sa.Column("image_url", sa.String(), nullable=True),
        sa.Column("video_url", sa.String(), nullable=True),
        sa.Column("linkedin_url", sa.String(), nullable=True),
        sa.Column("media", sa.JSON(), nullable=False),
        sa.Column("order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("is_featured", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("tags", sa.JSON(), nullable=False),
        sa.Column("category", sa.String(), nullable=True),
        sa.Column("seo", sa.JSON(), nullable=False),
        sa.Column("published_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_by", sa.String(), nullable=False),
        sa.Column("last_modified_by", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("key", name="uq_content_items_key"),
    )
    op.create_index(op.f("ix_content_items_key"), "content_items", ["key"], unique=False)
    op.create_index(op.f("ix_content_items_content_type"), "content_items", ["content_type"], unique=False)
    op.create_index(op.f("ix_content_items_order"), "content_items", ["order"], unique=False)
    op.create_index(op.f("ix_content_items_is_active"), "content_items", ["is_active"], unique=False)
    op.create_index(op.f("ix_content_items_published_at"), "content_items", ["published_at"], unique=False)

    op.create_table(
        "songs",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("key", sa.String(length=50), nullable=False),
        sa.Column("title", sa.JSON(), nullable=False),
        sa.Column("description", sa.JSON(), nullable=False),
        sa.Column("artist", sa.JSON(), nullable=False),
        sa.Column("lyrics", sa.JSON(), nullable=False),
        sa.Column("audio_url", sa.String(), nullable=False),
        sa.Column("audio_asset_id", sa.String(), nullable=True),
        sa.Column("duration_seconds", sa.Float(), nullable=False),
        sa.Column("cover_image", sa.JSON(), nullable=False),
        sa.Column("genre", sa.String(), nullable=True),
        sa.Column("release_year", sa.Integer(), nullable=True),
        sa.Column("order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("is_featured", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("tags", sa.JSON(), nullable=False),
        sa.Column("play_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_by", sa.String(), nullable=False),
        sa.Column("last_modified_by", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("key", name="uq_songs_key"),
    )
    op.create_index(op.f("ix_songs_key"), "songs", ["key"], unique=False)
    op.create_index(op.f("ix_songs_audio_asset_id"), "songs", ["audio_asset_id"], unique=False)
    op.create_index(op.f("ix_songs_genre"), "songs", ["genre"], unique=False)
    op.create_index(op.f("ix_songs_order"), "songs", ["order"], unique=False)
    op.create_index(op.f("ix_songs_is_active"), "songs", ["is_active"], unique=False)
    op.create_index(op.f("ix_songs_is_featured"), "songs", ["is_featured"], unique=False)
    op.create_index(op.f("ix_songs_created_at"), "songs", ["created_at"], unique=False)

    op.create_table(
        "footers",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("left_column", sa.JSON(), nullable=False),
        sa.Column("center_column", sa.JSON(), nullable=False),
        sa.Column("right_column", sa.JSON(), nullable=False),
        sa.Column("social_icons", sa.JSON(), nullable=False),
        sa.Column("copyright_text", sa.JSON(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("last_updated", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "logos",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("logo_url", sa.String(), nullable=False),
        sa.Column("media_asset_id", sa.String(), nullable=True),
        sa.Column("alt_text", sa.JSON(), nullable=False),
        sa.Column("width", sa.Integer(), nullable=False, server_default="120"),
        sa.Column("height", sa.Integer(), nullable=False, server_default="40"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "media_assets",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("storage_id", sa.String(), nullable=False),
        sa.Column("filename", sa.String(), nullable=False),
        sa.Column("original_name", sa.String(), nullable=False),
        sa.Column("url", sa.String(), nullable=False),
        sa.Column("secure_url", sa.String(), nullable=False),
        sa.Column("mime_type", sa.String(), nullable=False),
        sa.Column("size_bytes", sa.Integer(), nullable=False),
        sa.Column("format", sa.String(), nullable=True),
        sa.Column("resource_kind", sa.String(), nullable=False),
        sa.Column("width", sa.Integer(), nullable=True),
        sa.Column("height", sa.Integer(), nullable=True),
        sa.Column("duration_seconds", sa.Float(), nullable=True),
        sa.Column("category", sa.String(), nullable=False, server_default="general"),
        sa.Column("usage_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_used_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_optimized", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("optimized_variants", sa.JSON(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("uploaded_by", sa.String(), nullable=False),
        sa.Column("alt_text", sa.JSON(), nullable=False),
        sa.Column("tags", sa.JSON(), nullable=False),
        sa.Column("description", sa.String(length=500), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("filename"),
    )
    op.create_index(op.f("ix_media_assets_storage_id"), "media_assets", ["storage_id"], unique=True)
    op.create_index(op.f("ix_media_assets_resource_kind"), "media_assets", ["resource_kind"], unique=False)
    op.create_index(op.f("ix_media_assets_category"), "media_assets", ["category"], unique=False)
    op.create_index(op.f("ix_media_assets_is_active"), "media_assets", ["is_active"], unique=False)
    op.create_index(op.f("ix_media_assets_uploaded_by"), "media_assets", ["uploaded_by"], unique=False)
    op.create_index(op.f("ix_media_assets_created_at"), "media_assets", ["created_at"], unique=False)

    op.create_table(
        "inquiries",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("age", sa.Integer(), nullable=False),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("phone", sa.String(length=20), nullable=False, server_default=""),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("status", sa.String(), nullable=False, server_default="new"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_inquiries_email"), "inquiries", ["email"], unique=False)
    op.create_index(op.f("ix_inquiries_status"), "inquiries", ["status"], unique=False)
    op.create_index(op.f("ix_inquiries_created_at"), "inquiries", ["created_at"], unique=False)


def downgrade() -> None:
    op.drop_index(op.f("ix_inquiries_created_at"), table_name="inquiries")
    op.drop_index(op.f("ix_inquiries_status"), table_name="inquiries")
    op.drop_index(op.f("ix_inquiries_email"), table_name="inquiries")
    op.drop_table("inquiries")
    op.drop_index(op.f("ix_media_assets_created_at"), table_name="media_assets")
    op.drop_index(op.f("ix_media_assets_uploaded_by"), table_name="media_assets")
    op.drop_index(op.f("ix_media_assets_is_active"), table_name="media_assets")
    op.drop_index(op.f("ix_media_assets_category"), table_name="media_assets")
    op.drop_index(op.f("ix_media_assets_resource_kind"), table_name="media_assets")
    op.drop_index(op.f("ix_media_assets_storage_id"), table_name="media_assets")
    op.drop_table("media_assets")
    op.drop_table("logos")
    op.drop_table("footers")
    op.drop_index(op.f("ix_songs_created_at"), table_name="songs")
    op.drop_index(op.f("ix_songs_is_featured"), table_name="songs")
    op.drop_index(op.f("ix_songs_is_active"), table_name="songs")
    op.drop_index(op.f("ix_songs_order"), table_name="songs")
    op.drop_index(op.f("ix_songs_genre"), table_name="songs")
    op.drop_index(op.f("ix_songs_audio_asset_id"), table_name="songs")
    op.drop_index(op.f("ix_songs_key"), table_name="songs")
    op.drop_table("songs")
    op.drop_index(op.f("ix_content_items_published_at"), table_name="content_items")
    op.drop_index(op.f("ix_content_items_is_active"), table_name="content_items")
    op.drop_index(op.f("ix_content_items_order"), table_name="content_items")
    op.drop_index(op.f("ix_content_items_content_type"), table_name="content_items")
    op.drop_index(op.f("ix_content_items_key"), table_name="content_items")
    op.drop_table("content_items")
