"""
Feed Registry

Keeps one NotificationFeed per signed-in viewer for the lifetime of the
process.
"""

import threading
from typing import Callable, Dict, Optional

import structlog

from orderdesk.domain.models import Viewer
from orderdesk.notifications.feed import NotificationFeed
from orderdesk.store.base import DocumentStore

logger = structlog.get_logger(__name__)


def _same_identity(a: Viewer, b: Viewer) -> bool:
    return a.email == b.email and a.role == b.role


class FeedRegistry:
    """
    Viewer email -> live feed.

    Asking for a viewer whose role changed restarts that viewer's feed.
    """

    def __init__(
        self,
        store: DocumentStore,
        feed_factory: Optional[Callable[[DocumentStore], NotificationFeed]] = None,
    ):
        self.store = store
        self._factory = feed_factory or NotificationFeed
        self._feeds: Dict[str, NotificationFeed] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._feeds)

    def __contains__(self, email: str) -> bool:
        return email in self._feeds

    def feed_for(self, viewer: Viewer) -> NotificationFeed:
        """Return the viewer's feed, starting or restarting it as needed"""
        if not viewer.email:
            raise ValueError("A notification feed needs a viewer email")

        with self._lock:
            feed = self._feeds.get(viewer.email)
            if feed is None:
                feed = self._factory(self.store)
                self._feeds[viewer.email] = feed

            changed = feed.viewer is not None and not _same_identity(feed.viewer, viewer)
            if not feed.is_running or changed:
                if changed:
                    logger.info("Viewer identity changed, restarting feed", viewer=viewer.email)
                feed.start(viewer)

            return feed

    def get(self, email: str) -> Optional[NotificationFeed]:
        return self._feeds.get(email)

    def release(self, email: str) -> bool:
        """Tear down and forget a viewer's feed"""
        with self._lock:
            feed = self._feeds.pop(email, None)
        if feed is None:
            return False
        feed.stop()
        return True

    def close_all(self) -> None:
        with self._lock:
            feeds, self._feeds = list(self._feeds.values()), {}
        for feed in feeds:
            feed.stop()
        logger.info("All notification feeds closed", count=len(feeds))
