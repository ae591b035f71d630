"""
Custom validators for application data.
Provides reusable validation functions.
"""
import re
from typing import Optional, Sequence

EMOJI_BASE = (
    "["
    "\U0001F600-\U0001F64F"  # emoticons
    "\U0001F300-\U0001F5FF"  # symbols & pictographs
    "\U0001F680-\U0001F6FF"  # transport & map symbols
    "\U0001F900-\U0001FAFF"  # supplemental symbols
    "\U00002600-\U000027BF"  # misc symbols & dingbats
    "]"
)

# Skin tones, variation selectors and tag characters (subdivision flags)
EMOJI_MODIFIER = "[\U0001F3FB-\U0001F3FF\uFE0E\uFE0F\U000E0020-\U000E007F]"

EMOJI_FLAG = "[\U0001F1E6-\U0001F1FF]{2}"

EMOJI_UNIT = f"{EMOJI_BASE}{EMOJI_MODIFIER}*"

# One emoji: a flag, or units joined by zero-width joiners
EMOJI_PATTERN = re.compile(f"{EMOJI_FLAG}|{EMOJI_UNIT}(?:\u200d{EMOJI_UNIT})*")

CONVERSATION_NAME_FORBIDDEN = set('<>{}[]\\|^`')


def canonical_pair_key(user_a: str, user_b: str) -> str:
    """
    Deterministic key for an unordered pair of user ids.

    Example:
        >>> canonical_pair_key("bob", "alice") == canonical_pair_key("alice", "bob")
        True
    """
    return ":".join(sorted([str(user_a), str(user_b)]))


def validate_emoji(emoji: str) -> bool:
    """
    Validate that the whole string is a single emoji.

    Skin tones, variation selectors, flags and ZWJ sequences such as
    family emojis are accepted; trailing text is not.
    """
    if not emoji or len(emoji) > 16:
        return False
    return EMOJI_PATTERN.fullmatch(emoji) is not None


def validate_conversation_name(name: Optional[str]) -> bool:
    """
    Validate conversation/group name.

    Returns:
        True if valid, False otherwise
    """
    if not name or not name.strip():
        return False

    if len(name) > 255:
        return False

    return not any(char in CONVERSATION_NAME_FORBIDDEN for char in name)


def has_message_payload(
    content: Optional[str],
    media: Optional[Sequence] = None,
    shared_tweet_id: Optional[str] = None
) -> bool:
    """A message needs non-blank content, at least one attachment, or a shared tweet."""
    return bool((content and content.strip()) or media or shared_tweet_id)
