from typing import Iterable, Optional, Tuple

from portfolio_api.core.config import settings


class SpamFilter:
    """Keyword blocklist check. Plain substring matching, no word boundaries."""

    def __init__(self, keywords: Iterable[str]) -> None:
        self.keywords: Tuple[str, ...] = tuple(k.lower() for k in keywords if k)

    def match(self, message: str) -> Optional[str]:
        """Return the first blocklisted keyword found in ``message``."""
        folded = message.lower()
        for keyword in self.keywords:
            if keyword in folded:
                return keyword
        return None

    def is_spam(self, message: str) -> bool:
        return self.match(message) is not None


def contains_spam(message: str, keywords: Optional[Iterable[str]] = None) -> bool:
    return SpamFilter(settings.SPAM_KEYWORDS if keywords is None else keywords).is_spam(message)
