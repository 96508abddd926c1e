# uvbunny/triggers/cascade.py
import logging
from firebase_admin import firestore

from uvbunny.core.constants import BATCH_LIMIT
from uvbunny.utils.paths import get_events_collection_path, get_counter_marks_collection_path

logger = logging.getLogger(__name__)


class CascadeDeleter:
    """
    Removes a deleted bunny's events (and counter marks) so they are not orphaned.

    Runs after the bunny is gone, so it is best-effort: failures are logged and
    never raised. Collections are drained page by page until a page comes back
    short, which removes ledgers of any size.
    """

    def __init__(self, db=None, page_size: int = BATCH_LIMIT):
        self.db = db or firestore.client()
        self.page_size = page_size

    def _drain(self, collection_ref) -> int:
        deleted = 0
        while True:
            docs = list(collection_ref.limit(self.page_size).stream())
            if not docs:
                break
            batch = self.db.batch()
            for doc in docs:
                batch.delete(doc.reference)
            batch.commit()
            deleted += len(docs)
            if len(docs) < self.page_size:
                break
        return deleted

    def on_bunny_deleted(self, uid: str, bunny_id: str) -> int:
        """Returns the number of events deleted (what was removed before a failure, if one occurs)."""
        deleted = 0
        try:
            events_ref = self.db.collection(get_events_collection_path(uid, bunny_id))
            deleted = self._drain(events_ref)
            logger.info(f"Deleted {deleted} events for bunny {bunny_id}")

            marks_ref = self.db.collection(get_counter_marks_collection_path(uid, bunny_id))
            self._drain(marks_ref)
        except Exception as e:
            # The bunny is already deleted; leftover events are the worst case.
            logger.error(f"Error cascading delete for bunny {bunny_id}: {e}", exc_info=True)
        return deleted
