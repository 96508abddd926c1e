# uvbunny/triggers/counter.py
"""
Keeps Bunny.eventCount in step with the carrot ledger.

Every adjustment is a read-then-write inside one Firestore transaction on the
bunny document, so concurrent carrot events never lose an update; the client
library retries the whole transaction on contention.

Triggers are delivered at least once. The transaction also records the applied
operation in counterMarks/{eventId}; a redelivered create or delete for an
event that was already counted is a no-op. Marks carry expireAt so a TTL
policy on counterMarks can prune them once redelivery is no longer possible;
without one they stay until the cascade removes them with the bunny.
"""

import logging
from datetime import timedelta
from typing import Any, Dict, Optional
from firebase_admin import firestore
from firebase_admin.firestore import Transaction

from uvbunny.core.constants import CARROT_GIVEN, COUNTER_MARK_TTL_DAYS
from uvbunny.models.carrot_event import parse_carrots
from uvbunny.utils.datetime_utils import DateTimeUtils
from uvbunny.utils.paths import get_bunny_path, get_counter_mark_path

logger = logging.getLogger(__name__)

OP_CREATED = 'created'
OP_DELETED = 'deleted'

# Platform redelivery per trigger. A create whose bunny is missing is retried.
# A delete whose bunny is gone comes from the cascade and has nothing left to
# decrement, so it raises once and is not redelivered.
RETRY_ON_CREATE = True
RETRY_ON_DELETE = False


class CounterMaintainer:
    """Applies carrot event creates/deletes to the parent bunny's eventCount."""

    def __init__(self, db=None):
        self.db = db or firestore.client()

    def _validated_carrots(self, event_id: str, data: Optional[Dict[str, Any]]) -> Optional[int]:
        data = data or {}
        event_type = data.get('type')
        carrots = data.get('carrots')
        count = parse_carrots(carrots)
        if event_type != CARROT_GIVEN or count is None:
            # The event stays in the ledger; only the counter ignores it.
            logger.warning(f"Invalid event {event_id}: type={event_type}, carrots={carrots}")
            return None
        return count

    def on_event_created(self, uid: str, bunny_id: str, event_id: str,
                         data: Optional[Dict[str, Any]]) -> Optional[int]:
        """Increment eventCount by the event's carrots. Returns the new count, or None if nothing changed."""
        carrots = self._validated_carrots(event_id, data)
        if carrots is None:
            return None
        return self._adjust(uid, bunny_id, event_id, OP_CREATED, carrots)

    def on_event_deleted(self, uid: str, bunny_id: str, event_id: str,
                         data: Optional[Dict[str, Any]]) -> Optional[int]:
        """Decrement eventCount by the event's carrots, floored at 0."""
        carrots = self._validated_carrots(event_id, data)
        if carrots is None:
            return None
        return self._adjust(uid, bunny_id, event_id, OP_DELETED, carrots)

    def _adjust(self, uid: str, bunny_id: str, event_id: str, op: str, carrots: int) -> Optional[int]:
        bunny_ref = self.db.document(get_bunny_path(uid, bunny_id))
        mark_ref = self.db.document(get_counter_mark_path(uid, bunny_id, event_id))
        transaction = self.db.transaction()

        @firestore.transactional
        def _adjust_in_transaction(transaction: Transaction) -> Optional[int]:
            # All reads happen before any write, as Firestore transactions require.
            bunny_snapshot = bunny_ref.get(transaction=transaction)
            if not bunny_snapshot.exists:
                raise FileNotFoundError(f"Bunny {bunny_id} not found")
            mark = mark_ref.get(transaction=transaction).to_dict() or {}
            if mark.get(op):
                return None

            current = (bunny_snapshot.to_dict() or {}).get('eventCount') or 0
            if op == OP_CREATED:
                new_count = current + carrots
            else:
                new_count = max(0, current - carrots)

            transaction.update(bunny_ref, {'eventCount': new_count})
            now = DateTimeUtils.now()
            transaction.set(mark_ref, {
                op: now,
                'carrots': carrots,
                'expireAt': now + timedelta(days=COUNTER_MARK_TTL_DAYS),
            }, merge=True)
            return new_count

        verb = 'Incremented' if op == OP_CREATED else 'Decremented'
        try:
            new_count = _adjust_in_transaction(transaction)
        except Exception as e:
            logger.error(f"Error adjusting eventCount for bunny {bunny_id} (event {event_id}, {op}): {e}", exc_info=True)
            raise

        if new_count is None:
            logger.info(f"Event {event_id} already {op} on bunny {bunny_id}; redelivery ignored")
        else:
            logger.info(f"{verb} eventCount for bunny {bunny_id} by {carrots} (now {new_count})")
        return new_count
