"""Exception hierarchy."""


class FeedMonitorError(Exception):
    """Base error for the feed monitor."""


class SourceError(FeedMonitorError):
    """A feed could not be fetched or parsed."""


class LLMError(FeedMonitorError):
    """The LLM endpoint rejected or failed a request."""


class LLMQuotaError(LLMError):
    """The LLM endpoint reported an exhausted quota or rate limit."""


QUOTA_MARKERS = ("resource_exhausted", "quota", "rate limit", "too many requests")


def is_quota_error(message: str) -> bool:
    """Whether an error message describes an exhausted quota or rate limit."""
    lowered = (message or "").lower()
    return any(marker in lowered for marker in QUOTA_MARKERS)
