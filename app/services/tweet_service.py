"""
Tweet service for business logic.
Handles posting (replies, quotes, mentions, community posts), likes,
retweets and timelines.
"""
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationFailedError
from app.core.websocket import connection_manager
from app.models.notification import NotificationType
from app.models.tweet import Tweet
from app.repositories.community_repo import CommunityRepository
from app.repositories.tweet_repo import TweetLikeRepository, TweetRepository, TweetRetweetRepository
from app.repositories.user_repo import UserRepository
from app.schemas.common import to_payload
from app.schemas.tweet import TweetResponse
from app.services.notification_service import NotificationService
from app.services.user_service import UserService
from app.utils.helpers import build_pagination, extract_mentions

logger = logging.getLogger(__name__)


class TweetService:
    """Service for tweet-related business logic."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.tweet_repo = TweetRepository(db)
        self.like_repo = TweetLikeRepository(db)
        self.retweet_repo = TweetRetweetRepository(db)
        self.user_repo = UserRepository(db)
        self.community_repo = CommunityRepository(db)
        self.user_service = UserService(db)
        self.notification_service = NotificationService(db)
        self.ws_manager = connection_manager

    async def _serialize(self, tweets: List[Tweet], viewer_id: Optional[str] = None) -> List[Dict[str, Any]]:
        tweet_ids = [t.id for t in tweets]
        authors = await self.user_service.get_projections(t.author_id for t in tweets)
        liked = await self.like_repo.acted_tweet_ids(tweet_ids, viewer_id) if viewer_id else set()
        retweeted = await self.retweet_repo.acted_tweet_ids(tweet_ids, viewer_id) if viewer_id else set()

        return [
            {
                "id": tweet.id,
                "author_id": tweet.author_id,
                "author": authors.get(tweet.author_id),
                "content": tweet.content,
                "media_urls": list(tweet.media_json or []),
                "reply_to_id": tweet.reply_to_id,
                "quote_tweet_id": tweet.quote_tweet_id,
                "community_id": tweet.community_id,
                "likes_count": tweet.likes_count,
                "retweets_count": tweet.retweets_count,
                "replies_count": tweet.replies_count,
                "is_liked": tweet.id in liked,
                "is_retweeted": tweet.id in retweeted,
                "created_at": tweet.created_at,
            }
            for tweet in tweets
        ]

    async def _get_active_or_404(self, tweet_id: str, detail: str = "Tweet not found") -> Tweet:
        tweet = await self.tweet_repo.get_active(tweet_id)
        if tweet is None:
            raise NotFoundError(detail)
        return tweet

    async def _get_visible_or_404(
        self,
        tweet_id: str,
        viewer_id: Optional[str],
        detail: str = "Tweet not found"
    ) -> Tweet:
        """Like ``_get_active_or_404``, but private-community tweets only exist for members."""
        tweet = await self._get_active_or_404(tweet_id, detail)
        if tweet.community_id and not await self.community_repo.is_visible_to(tweet.community_id, viewer_id):
            raise NotFoundError(detail)
        return tweet

    async def create_tweet(
        self,
        author_id: str,
        content: str,
        media: Optional[List[str]] = None,
        reply_to_id: Optional[str] = None,
        quote_tweet_id: Optional[str] = None,
        community_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Post a tweet, reply or quote.

        Replies bump the parent's reply counter and notify its author;
        quotes notify the quoted author; every ``@username`` mention of an
        existing user notifies that user. Community tweets require
        membership and are pushed to the community room.

        Raises:
            ValidationFailedError: Empty or too long content
            NotFoundError: Parent, quoted tweet or community missing
            ForbiddenError: Posting to a community without being a member
        """
        if not content or not content.strip():
            raise ValidationFailedError("Tweet content cannot be empty")
        if len(content) > settings.tweet_max_length:
            raise ValidationFailedError(
                f"Tweet content cannot exceed {settings.tweet_max_length} characters"
            )

        parent = (
            await self._get_visible_or_404(reply_to_id, author_id, "Parent tweet not found")
            if reply_to_id else None
        )
        quoted = (
            await self._get_visible_or_404(quote_tweet_id, author_id, "Quoted tweet not found")
            if quote_tweet_id else None
        )

        if community_id:
            if await self.community_repo.get(community_id) is None:
                raise NotFoundError("Community not found")
            if await self.community_repo.get_member(community_id, author_id) is None:
                raise ForbiddenError("Join the community to post in it")

        tweet = await self.tweet_repo.create(
            author_id=author_id,
            content=content,
            media_json=list(media or []),
            reply_to_id=reply_to_id,
            quote_tweet_id=quote_tweet_id,
            community_id=community_id
        )
        await self.user_repo.increment_counters(author_id, tweets_count=1)
        if parent:
            await self.tweet_repo.increment(parent.id, replies_count=1)
        await self.db.commit()

        logger.info(f"Tweet {tweet.id} created by {author_id}")

        if parent:
            await self.notification_service.notify(parent.author_id, author_id, NotificationType.REPLY, parent.id)
        if quoted:
            await self.notification_service.notify(quoted.author_id, author_id, NotificationType.QUOTE, quoted.id)

        mentioned = await self.user_repo.get_by_usernames(extract_mentions(content))
        for user in mentioned:
            await self.notification_service.notify(user.id, author_id, NotificationType.MENTION, tweet.id)

        view = (await self._serialize([tweet], author_id))[0]

        if community_id:
            await self.ws_manager.broadcast_community_tweet(community_id, to_payload(TweetResponse, view))

        return view

    async def get_tweet(self, tweet_id: str, viewer_id: Optional[str] = None) -> Dict[str, Any]:
        tweet = await self._get_visible_or_404(tweet_id, viewer_id)
        return (await self._serialize([tweet], viewer_id))[0]

    async def delete_tweet(self, tweet_id: str, user_id: str) -> None:
        """Soft-delete a tweet. Only its author may delete it."""
        tweet = await self._get_active_or_404(tweet_id)
        if tweet.author_id != user_id:
            raise ForbiddenError("You can only delete your own tweets")

        await self.tweet_repo.update(tweet_id, is_deleted=True)
        await self.user_repo.increment_counters(user_id, tweets_count=-1)
        if tweet.reply_to_id and await self.tweet_repo.get_active(tweet.reply_to_id):
            await self.tweet_repo.increment(tweet.reply_to_id, replies_count=-1)
        await self.db.commit()

        logger.info(f"Tweet {tweet_id} deleted by {user_id}")

    async def toggle_like(self, tweet_id: str, user_id: str) -> Dict[str, Any]:
        """
        Like a tweet, or unlike it when already liked.

        The relation row and ``likes_count`` change together; liking
        notifies the author.
        """
        tweet = await self._get_visible_or_404(tweet_id, user_id)
        author_id = tweet.author_id

        liked = not await self.like_repo.has_acted(tweet_id, user_id)
        if liked:
            try:
                await self.like_repo.add(tweet_id, user_id)
            except IntegrityError:
                await self.db.rollback()
                raise ConflictError("Tweet already liked")
            await self.tweet_repo.increment(tweet_id, likes_count=1)
        else:
            await self.like_repo.remove(tweet_id, user_id)
            await self.tweet_repo.increment(tweet_id, likes_count=-1)
        await self.db.commit()

        if liked:
            await self.notification_service.notify(author_id, user_id, NotificationType.LIKE, tweet_id)

        tweet = await self.tweet_repo.get(tweet_id)
        return {"is_liked": liked, "likes_count": tweet.likes_count}

    async def toggle_retweet(self, tweet_id: str, user_id: str) -> Dict[str, Any]:
        """Retweet a tweet, or undo the retweet."""
        tweet = await self._get_visible_or_404(tweet_id, user_id)
        author_id = tweet.author_id

        retweeted = not await self.retweet_repo.has_acted(tweet_id, user_id)
        if retweeted:
            try:
                await self.retweet_repo.add(tweet_id, user_id)
            except IntegrityError:
                await self.db.rollback()
                raise ConflictError("Tweet already retweeted")
            await self.tweet_repo.increment(tweet_id, retweets_count=1)
        else:
            await self.retweet_repo.remove(tweet_id, user_id)
            await self.tweet_repo.increment(tweet_id, retweets_count=-1)
        await self.db.commit()

        if retweeted:
            await self.notification_service.notify(author_id, user_id, NotificationType.RETWEET, tweet_id)

        tweet = await self.tweet_repo.get(tweet_id)
        return {"is_retweeted": retweeted, "retweets_count": tweet.retweets_count}

    async def list_timeline(
        self,
        viewer_id: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
        author_username: Optional[str] = None,
        community_id: Optional[str] = None,
        sort: str = "newest"
    ) -> Dict[str, Any]:
        """
        Get non-deleted tweets, optionally by author or community.

        Tweets in private communities are left out unless the viewer is a member.
        """
        author_id = None
        if author_username:
            author = await self.user_repo.get_by_username(author_username)
            if author is None:
                raise NotFoundError("User not found")
            author_id = author.id

        tweets = await self.tweet_repo.list_timeline(
            limit=limit,
            offset=(page - 1) * limit,
            author_id=author_id,
            community_id=community_id,
            viewer_id=viewer_id,
            sort=sort
        )
        total = await self.tweet_repo.count_timeline(
            author_id=author_id,
            community_id=community_id,
            viewer_id=viewer_id
        )

        return {
            "tweets": await self._serialize(tweets, viewer_id),
            "pagination": build_pagination(page, limit, total),
        }
