"""initial schema

Revision ID: c4a1f0e7d2b3
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'c4a1f0e7d2b3'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


MESSAGE_TYPES = ('TEXT', 'IMAGE', 'VIDEO', 'GIF', 'FILE', 'TWEET_SHARE')
NOTIFICATION_TYPES = ('LIKE', 'RETWEET', 'REPLY', 'FOLLOW', 'MENTION', 'QUOTE')
COMMUNITY_ROLES = ('MEMBER', 'MODERATOR', 'ADMIN')


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade() -> None:
    """
    Create the full schema.

    Key constraints:
    - conversations.participant_key is unique (one direct conversation per pair)
    - message_reactions is unique per (message, user, emoji)
    - messages is unique per (conversation, sequence_number)
    """
    op.create_table('users',
        sa.Column('id', sa.String(length=255), nullable=False),
        sa.Column('username', sa.String(length=50), nullable=False),
        sa.Column('display_name', sa.String(length=100), nullable=False),
        sa.Column('bio', sa.Text(), nullable=True),
        sa.Column('profile_image_url', sa.String(length=500), nullable=True),
        sa.Column('is_verified', sa.Boolean(), nullable=False),
        sa.Column('followers_count', sa.Integer(), server_default='0', nullable=False),
        sa.Column('following_count', sa.Integer(), server_default='0', nullable=False),
        sa.Column('tweets_count', sa.Integer(), server_default='0', nullable=False),
        *_timestamps(),
        sa.CheckConstraint('followers_count >= 0', name='ck_users_followers_count'),
        sa.CheckConstraint('following_count >= 0', name='ck_users_following_count'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_users_username', 'users', ['username'], unique=True)
    op.create_index('ix_users_created_at', 'users', ['created_at'], unique=False)

    op.create_table('follows',
        sa.Column('follower_id', sa.String(length=255), nullable=False),
        sa.Column('following_id', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.CheckConstraint('follower_id <> following_id', name='ck_follows_not_self'),
        sa.ForeignKeyConstraint(['follower_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['following_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('follower_id', 'following_id')
    )
    op.create_index('idx_follows_following', 'follows', ['following_id'], unique=False)

    op.create_table('communities',
        sa.Column('id', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=50), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('category', sa.String(length=50), nullable=False),
        sa.Column('creator_id', sa.String(length=255), nullable=False),
        sa.Column('members_count', sa.Integer(), server_default='0', nullable=False),
        sa.Column('is_private', sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['creator_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name')
    )
    op.create_index('ix_communities_category', 'communities', ['category'], unique=False)
    op.create_index('ix_communities_created_at', 'communities', ['created_at'], unique=False)

    op.create_table('community_members',
        sa.Column('community_id', sa.String(length=255), nullable=False),
        sa.Column('user_id', sa.String(length=255), nullable=False),
        sa.Column('role', sa.Enum(*COMMUNITY_ROLES, name='community_role', native_enum=False), nullable=False),
        sa.Column('joined_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['community_id'], ['communities.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('community_id', 'user_id')
    )
    op.create_index('idx_community_members_user', 'community_members', ['user_id'], unique=False)

    op.create_table('tweets',
        sa.Column('id', sa.String(length=255), nullable=False),
        sa.Column('author_id', sa.String(length=255), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('media_json', sa.JSON(), nullable=False),
        sa.Column('reply_to_id', sa.String(length=255), nullable=True),
        sa.Column('quote_tweet_id', sa.String(length=255), nullable=True),
        sa.Column('community_id', sa.String(length=255), nullable=True),
        sa.Column('likes_count', sa.Integer(), server_default='0', nullable=False),
        sa.Column('retweets_count', sa.Integer(), server_default='0', nullable=False),
        sa.Column('replies_count', sa.Integer(), server_default='0', nullable=False),
        sa.Column('is_deleted', sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['author_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['community_id'], ['communities.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['quote_tweet_id'], ['tweets.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['reply_to_id'], ['tweets.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_tweets_author_id', 'tweets', ['author_id'], unique=False)
    op.create_index('ix_tweets_reply_to_id', 'tweets', ['reply_to_id'], unique=False)
    op.create_index('ix_tweets_community_id', 'tweets', ['community_id'], unique=False)
    op.create_index('ix_tweets_created_at', 'tweets', ['created_at'], unique=False)

    for table, index in (('tweet_likes', 'idx_tweet_likes_user'), ('tweet_retweets', 'idx_tweet_retweets_user')):
        op.create_table(table,
            sa.Column('tweet_id', sa.String(length=255), nullable=False),
            sa.Column('user_id', sa.String(length=255), nullable=False),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
            sa.ForeignKeyConstraint(['tweet_id'], ['tweets.id'], ondelete='CASCADE'),
            sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('tweet_id', 'user_id')
        )
        op.create_index(index, table, ['user_id'], unique=False)

    op.create_table('conversations',
        sa.Column('id', sa.String(length=255), nullable=False),
        sa.Column('is_group', sa.Boolean(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=True),
        sa.Column('avatar_url', sa.String(length=500), nullable=True),
        sa.Column('participant_key', sa.String(length=600), nullable=True),
        sa.Column('created_by', sa.String(length=255), nullable=True),
        sa.Column('last_message_id', sa.String(length=255), nullable=True),
        sa.Column('last_activity_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('last_sequence', sa.BigInteger(), server_default='0', nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['created_by'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('participant_key')
    )
    op.create_index('idx_conversations_last_activity', 'conversations', ['last_activity_at'], unique=False)
    op.create_index('ix_conversations_created_at', 'conversations', ['created_at'], unique=False)

    op.create_table('conversation_participants',
        sa.Column('conversation_id', sa.String(length=255), nullable=False),
        sa.Column('user_id', sa.String(length=255), nullable=False),
        sa.Column('unread_count', sa.Integer(), server_default='0', nullable=False),
        sa.Column('is_archived', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('joined_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.CheckConstraint('unread_count >= 0', name='ck_participants_unread_non_negative'),
        sa.ForeignKeyConstraint(['conversation_id'], ['conversations.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('conversation_id', 'user_id')
    )
    op.create_index('idx_conversation_participants_user', 'conversation_participants', ['user_id'], unique=False)

    op.create_table('messages',
        sa.Column('id', sa.String(length=255), nullable=False),
        sa.Column('conversation_id', sa.String(length=255), nullable=False),
        sa.Column('sender_id', sa.String(length=255), nullable=False),
        sa.Column('content', sa.Text(), nullable=True),
        sa.Column('message_type', sa.Enum(*MESSAGE_TYPES, name='message_type', native_enum=False), nullable=False),
        sa.Column('media_json', sa.JSON(), nullable=False),
        sa.Column('shared_tweet_id', sa.String(length=255), nullable=True),
        sa.Column('reply_to_id', sa.String(length=255), nullable=True),
        sa.Column('sequence_number', sa.BigInteger(), nullable=False),
        sa.Column('is_edited', sa.Boolean(), nullable=False),
        sa.Column('edited_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('original_content', sa.Text(), nullable=True),
        sa.Column('is_deleted', sa.Boolean(), nullable=False),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['conversation_id'], ['conversations.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['reply_to_id'], ['messages.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['sender_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['shared_tweet_id'], ['tweets.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('conversation_id', 'sequence_number', name='uq_conversation_sequence')
    )
    op.create_index('ix_messages_conversation_id', 'messages', ['conversation_id'], unique=False)
    op.create_index('ix_messages_sender_id', 'messages', ['sender_id'], unique=False)
    op.create_index('ix_messages_created_at', 'messages', ['created_at'], unique=False)
    op.create_index(
        'idx_messages_conversation_created',
        'messages',
        ['conversation_id', 'created_at', 'sequence_number'],
        unique=False
    )

    op.create_table('message_reads',
        sa.Column('message_id', sa.String(length=255), nullable=False),
        sa.Column('user_id', sa.String(length=255), nullable=False),
        sa.Column('read_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['message_id'], ['messages.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('message_id', 'user_id')
    )
    op.create_index('idx_message_reads_user', 'message_reads', ['user_id'], unique=False)

    op.create_table('message_reactions',
        sa.Column('id', sa.String(length=255), nullable=False),
        sa.Column('message_id', sa.String(length=255), nullable=False),
        sa.Column('user_id', sa.String(length=255), nullable=False),
        sa.Column('emoji', sa.String(length=50), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['message_id'], ['messages.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('message_id', 'user_id', 'emoji', name='uq_message_reactions_user_emoji')
    )
    op.create_index('idx_message_reactions_message', 'message_reactions', ['message_id'], unique=False)

    op.create_table('user_deleted_messages',
        sa.Column('user_id', sa.String(length=255), nullable=False),
        sa.Column('message_id', sa.String(length=255), nullable=False),
        sa.Column('deleted_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['message_id'], ['messages.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('user_id', 'message_id')
    )
    op.create_index('idx_user_deleted_messages_message', 'user_deleted_messages', ['message_id'], unique=False)

    op.create_table('notifications',
        sa.Column('id', sa.String(length=255), nullable=False),
        sa.Column('recipient_id', sa.String(length=255), nullable=False),
        sa.Column('sender_id', sa.String(length=255), nullable=False),
        sa.Column('type', sa.Enum(*NOTIFICATION_TYPES, name='notification_type', native_enum=False), nullable=False),
        sa.Column('message', sa.String(length=255), nullable=False),
        sa.Column('tweet_id', sa.String(length=255), nullable=True),
        sa.Column('is_read', sa.Boolean(), nullable=False),
        sa.Column('read_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.CheckConstraint('recipient_id <> sender_id', name='ck_notifications_not_self'),
        sa.ForeignKeyConstraint(['recipient_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['sender_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['tweet_id'], ['tweets.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_notifications_sender_id', 'notifications', ['sender_id'], unique=False)
    op.create_index('ix_notifications_created_at', 'notifications', ['created_at'], unique=False)
    op.create_index(
        'idx_notifications_recipient_created',
        'notifications',
        ['recipient_id', 'created_at'],
        unique=False
    )
    op.create_index(
        'idx_notifications_dedup',
        'notifications',
        ['recipient_id', 'sender_id', 'type', 'tweet_id'],
        unique=False
    )


def downgrade() -> None:
    """Drop every table (reverse dependency order)."""
    op.drop_table('notifications')
    op.drop_table('user_deleted_messages')
    op.drop_table('message_reactions')
    op.drop_table('message_reads')
    op.drop_table('messages')
    op.drop_table('conversation_participants')
    op.drop_table('conversations')
    op.drop_table('tweet_retweets')
    op.drop_table('tweet_likes')
    op.drop_table('tweets')
    op.drop_table('community_members')
    op.drop_table('communities')
    op.drop_table('follows')
    op.drop_table('users')
