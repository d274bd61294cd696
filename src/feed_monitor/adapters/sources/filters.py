"""Shared predicates for sources: classification and URL matching."""

import re
from typing import Optional

from feed_monitor.core.entities import ContentKind, SourceKind


YOUTUBE_FEED_RE = re.compile(r"youtube\.com/feeds/videos\.xml\?channel_id=(UC[\w-]{22})")
YOUTUBE_CHANNEL_RE = re.compile(r"youtube\.com/channel/(UC[\w-]{22})")
YOUTUBE_WATCH_RE = re.compile(r"(?:youtube\.com/(?:watch\?v=|shorts/|embed/)|youtu\.be/)([\w-]{11})")
REDDIT_SUBREDDIT_RE = re.compile(r"reddit\.com/r/([A-Za-z0-9_]+)")

# Links the bot itself puts into notifications; used to resolve replies.
ITEM_LINK_RE = re.compile(
    r"https?://(?:www\.|m\.)?"
    r"(?:youtube\.com/watch\?v=[\w-]{11}|youtube\.com/shorts/[\w-]{11}|youtu\.be/[\w-]{11}"
    r"|reddit\.com/r/[^\s<>\"]+)"
)
# Label preceding the item link, in rendered (plain) or raw HTML form
LINK_LABEL_RE = re.compile(r"Link:(?:</b>)?\s*$")


def classify_content_kind(title: str, snippet: str) -> ContentKind:
    """
    Classify an item as short or longform.

    ``#shorts`` in the title is matched case-sensitively, ``short`` anywhere
    in the snippet case-insensitively.
    """
    if "#shorts" in (title or "") or "short" in (snippet or "").lower():
        return ContentKind.SHORT
    return ContentKind.LONGFORM


def is_youtube_url(url: str) -> bool:
    return "youtube.com" in url or "youtu.be" in url


def is_reddit_url(url: str) -> bool:
    return "reddit.com" in url


def is_youtube_watch_url(url: str) -> bool:
    return YOUTUBE_WATCH_RE.search(url or "") is not None


def extract_video_id(url: str) -> Optional[str]:
    match = YOUTUBE_WATCH_RE.search(url or "")
    return match.group(1) if match else None


def extract_subreddit(url: str) -> Optional[str]:
    match = REDDIT_SUBREDDIT_RE.search(url or "")
    return match.group(1) if match else None


def source_kind_for_link(link: str) -> SourceKind:
    """Guess the source kind of a stored item from its link."""
    if is_reddit_url(link):
        return SourceKind.REDDIT
    if is_youtube_url(link):
        return SourceKind.YOUTUBE
    return SourceKind.RSS


def extract_item_link(text: str) -> Optional[str]:
    """
    Find the item link in a notification.

    Titles may contain links too, so the URL after the ``Link:`` label wins;
    without a label the last YouTube or Reddit link is used.
    """
    text = text or ""
    matches = list(ITEM_LINK_RE.finditer(text))
    if not matches:
        return None

    chosen = matches[-1]
    for match in matches:
        if LINK_LABEL_RE.search(text, 0, match.start()):
            chosen = match
            break
    return chosen.group(0).rstrip(".,)")
