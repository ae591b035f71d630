"""
Tests for helper functions.
"""
from datetime import timedelta

from app.utils.datetime_utils import utc_now
from app.utils.helpers import build_pagination, calculate_time_ago, extract_mentions, generate_cache_key


class TestGenerateCacheKey:
    def test_joins_parts(self):
        assert generate_cache_key("notification", "a", "b", "like", "-") == "notification:a:b:like:-"


class TestBuildPagination:
    """Tests for build_pagination() function."""

    def test_first_page(self):
        assert build_pagination(page=1, limit=20, total=45) == {
            "currentPage": 1,
            "totalPages": 3,
            "total": 45,
            "hasNext": True,
            "hasPrev": False,
        }

    def test_last_page(self):
        pagination = build_pagination(page=3, limit=20, total=45)

        assert pagination["hasNext"] is False
        assert pagination["hasPrev"] is True

    def test_empty(self):
        pagination = build_pagination(page=1, limit=20, total=0)

        assert pagination["totalPages"] == 0
        assert pagination["hasNext"] is False


class TestExtractMentions:
    """Tests for extract_mentions() function."""

    def test_unique_in_order(self):
        assert extract_mentions("hey @bob and @carol, @bob again") == ["bob", "carol"]

    def test_no_mentions(self):
        assert extract_mentions("no handles here") == []
        assert extract_mentions("") == []

    def test_email_like_text(self):
        """Test the part after '@' is taken as a handle."""
        assert extract_mentions("mail me at me@example.com") == ["example"]


class TestCalculateTimeAgo:
    """Tests for calculate_time_ago() function."""

    def test_buckets(self):
        now = utc_now()

        assert calculate_time_ago(now) == "now"
        assert calculate_time_ago(now - timedelta(minutes=5)) == "5m"
        assert calculate_time_ago(now - timedelta(hours=2, minutes=1)) == "2h"
        assert calculate_time_ago(now - timedelta(days=3, minutes=1)) == "3d"

    def test_naive_input(self):
        """Test naive values read back from SQLite are treated as UTC."""
        naive = (utc_now() - timedelta(minutes=10, seconds=5)).replace(tzinfo=None)

        assert calculate_time_ago(naive) == "10m"
