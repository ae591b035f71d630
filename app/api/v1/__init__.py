"""
API v1 router exports.
Provides API endpoint routers.
"""
from app.api.v1 import communities, conversations, messages, notifications, tweets, users

__all__ = [
    "communities",
    "conversations",
    "messages",
    "notifications",
    "tweets",
    "users",
]
