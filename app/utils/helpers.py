"""
Helper functions for common operations.
Provides reusable utility functions.
"""
import math
import re
from datetime import datetime
from typing import Any, Dict, List

from app.utils.datetime_utils import ensure_utc, utc_now

MENTION_PATTERN = re.compile(r'@(\w{1,50})')


def generate_cache_key(*parts: str) -> str:
    """
    Generate a cache key from parts.

    Example:
        >>> generate_cache_key("dm", "a:b")
        'dm:a:b'
    """
    return ":".join(str(part) for part in parts)


def build_pagination(page: int, limit: int, total: int) -> Dict[str, Any]:
    """
    Build page-based pagination metadata.

    Example:
        >>> build_pagination(page=1, limit=20, total=45)
        {'currentPage': 1, 'totalPages': 3, 'total': 45, 'hasNext': True, 'hasPrev': False}
    """
    return {
        "currentPage": page,
        "totalPages": math.ceil(total / limit) if limit else 0,
        "total": total,
        "hasNext": page * limit < total,
        "hasPrev": page > 1,
    }


def extract_mentions(text: str) -> List[str]:
    """
    Extract unique usernames from @mentions, in order of appearance.

    Example:
        >>> extract_mentions("hey @bob and @carol, @bob again")
        ['bob', 'carol']
    """
    if not text:
        return []
    return list(dict.fromkeys(MENTION_PATTERN.findall(text)))


def calculate_time_ago(dt: datetime) -> str:
    """
    Compact time-ago label used by notification feeds.

    Example:
        >>> calculate_time_ago(utc_now() - timedelta(hours=2))
        '2h'
    """
    seconds = (utc_now() - ensure_utc(dt)).total_seconds()

    if seconds < 60:
        return "now"
    if seconds < 3600:
        return f"{int(seconds // 60)}m"
    if seconds < 86400:
        return f"{int(seconds // 3600)}h"
    return f"{int(seconds // 86400)}d"
