# uvbunny/services/live_bunnies.py
"""
Live bunny list with happiness.

Two Firestore listeners (the user's bunnies collection and the config
document) feed one subscription. Whenever either fires, the latest values of
both are combined and the happiness of every bunny is recomputed, so a config
change re-emits the whole list without any write to bunny data.

Firestore invokes listener callbacks on its own background threads.
"""

import logging
import threading
from typing import Any, Callable, Dict, List, Optional
from firebase_admin import firestore

from uvbunny.models.bunny import Bunny
from uvbunny.models.user_config import UserConfig
from uvbunny.services.happiness import bunnies_with_happiness
from uvbunny.utils.paths import get_bunnies_collection_path, get_user_config_path

logger = logging.getLogger(__name__)

BunnyListListener = Callable[[List[Dict[str, Any]]], None]


class BunnySubscription:
    """Handle returned by BunnyFeed.subscribe(); call unsubscribe() to stop listening."""

    def __init__(self, uid: str, listener: BunnyListListener):
        self.uid = uid
        self._listener = listener
        self._lock = threading.Lock()
        self._bunnies: Optional[List[Bunny]] = None
        self._config: Optional[UserConfig] = None
        self._watches: List[Any] = []
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def _attach(self, watch: Any) -> None:
        self._watches.append(watch)

    def on_bunnies_snapshot(self, docs, changes, read_time) -> None:
        bunnies = [Bunny.from_dict(doc.id, doc.to_dict()) for doc in docs if doc.exists]
        with self._lock:
            self._bunnies = sorted(bunnies, key=lambda b: (b.created_at, b.bunny_id))
            self._emit_locked()

    def on_config_snapshot(self, docs, changes, read_time) -> None:
        snapshot = docs[0] if docs else None
        data = snapshot.to_dict() if snapshot is not None and snapshot.exists else None
        with self._lock:
            self._config = UserConfig.from_dict(data)
            self._emit_locked()

    def _emit_locked(self) -> None:
        # Nothing is emitted until both inputs have delivered their first snapshot.
        if self._closed or self._bunnies is None or self._config is None:
            return
        payload = bunnies_with_happiness(self._bunnies, self._config)
        try:
            self._listener(payload)
        except Exception as e:
            logger.error(f"Bunny feed listener failed for user {self.uid}: {e}", exc_info=True)

    def unsubscribe(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            watches, self._watches = self._watches, []
        for watch in watches:
            try:
                watch.unsubscribe()
            except Exception as e:
                logger.warning(f"Failed to detach Firestore listener for user {self.uid}: {e}")
        logger.info(f"Bunny feed closed for user {self.uid}")


class BunnyFeed:
    """Creates live subscriptions to a user's bunnies with derived happiness."""

    def __init__(self, db=None):
        self.db = db or firestore.client()

    def subscribe(self, uid: str, listener: BunnyListListener) -> BunnySubscription:
        if not uid:
            raise PermissionError("User not authenticated")

        subscription = BunnySubscription(uid, listener)
        config_ref = self.db.document(get_user_config_path(uid))
        bunnies_ref = self.db.collection(get_bunnies_collection_path(uid))
        subscription._attach(config_ref.on_snapshot(subscription.on_config_snapshot))
        subscription._attach(bunnies_ref.on_snapshot(subscription.on_bunnies_snapshot))
        logger.info(f"Bunny feed opened for user {uid}")
        return subscription
