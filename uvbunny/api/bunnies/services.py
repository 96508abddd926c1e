# uvbunny/api/bunnies/services.py
import logging
import random
from typing import Dict, Any, List, Optional, Tuple
from firebase_admin import firestore

from uvbunny.api.config.services import ConfigService
from uvbunny.core.constants import (
    BUNNY_NAME_MAX_LENGTH,
    EVENTS_PAGE_SIZE,
    MAX_EVENTS_PAGE_SIZE,
    MIN_CARROTS_PER_EVENT,
    MAX_CARROTS_PER_EVENT,
)
from uvbunny.models.bunny import Bunny, BunnyColor
from uvbunny.models.carrot_event import CarrotEvent, parse_carrots
from uvbunny.services import happiness
from uvbunny.utils.datetime_utils import DateTimeUtils
from uvbunny.utils.paths import (
    get_bunnies_collection_path,
    get_bunny_path,
    get_events_collection_path,
)


class BunnyService:
    """
    Bunnies and their carrot ledger.

    The service only appends and removes events; eventCount is maintained by the
    counter trigger, so a freshly given carrot shows up in happiness shortly after
    the request returns.
    """
    def __init__(self, config_service: ConfigService, db=None, rng: Optional[random.Random] = None):
        self.db = db or firestore.client()
        self.config_service = config_service
        self.rng = rng or random.Random()
        logging.info("BunnyService initialized with dependencies.")

    def _require_uid(self, uid: Optional[str]) -> str:
        if not uid:
            raise PermissionError("User not authenticated")
        return uid

    def _bunnies_ref(self, uid: str):
        return self.db.collection(get_bunnies_collection_path(self._require_uid(uid)))

    def _bunny_ref(self, uid: str, bunny_id: str):
        return self.db.document(get_bunny_path(self._require_uid(uid), bunny_id))

    def _events_ref(self, uid: str, bunny_id: str):
        return self.db.collection(get_events_collection_path(self._require_uid(uid), bunny_id))

    # --- bunnies ---

    def create_bunny(self, uid: str, name: str, color: Optional[str] = None) -> str:
        """Create a bunny with eventCount 0 and return its id. Without a color one is picked at random."""
        self._require_uid(uid)
        name = (name or '').strip()
        if not name or len(name) > BUNNY_NAME_MAX_LENGTH:
            raise ValueError(f"Bunny name must be 1-{BUNNY_NAME_MAX_LENGTH} characters")

        if color is None:
            color_class = self.rng.choice(list(BunnyColor))
        else:
            try:
                color_class = BunnyColor(color)
            except ValueError:
                raise ValueError(f"Unknown colorClass '{color}'")

        doc_ref = self._bunnies_ref(uid).document()
        bunny = Bunny(bunny_id=doc_ref.id, name=name, color_class=color_class, event_count=0)
        doc_ref.set(DateTimeUtils.for_firestore(bunny.to_dict()))
        logging.info(f"Bunny {doc_ref.id} created for user {uid} ({color_class.value})")
        return doc_ref.id

    def get_bunny(self, uid: str, bunny_id: str) -> Bunny:
        doc = self._bunny_ref(uid, bunny_id).get()
        if not doc.exists:
            raise FileNotFoundError(f"Bunny {bunny_id} not found")
        return Bunny.from_dict(doc.id, doc.to_dict())

    def list_bunnies(self, uid: str) -> List[Bunny]:
        bunnies = [Bunny.from_dict(doc.id, doc.to_dict()) for doc in self._bunnies_ref(uid).stream()]
        return sorted(bunnies, key=lambda b: (b.created_at, b.bunny_id))

    def get_bunny_with_happiness(self, uid: str, bunny_id: str) -> Dict[str, Any]:
        bunny = self.get_bunny(uid, bunny_id)
        return happiness.bunny_with_happiness(bunny, self.config_service.get_config(uid))

    def list_bunnies_with_happiness(self, uid: str) -> List[Dict[str, Any]]:
        """All bunnies with happiness derived from the user's current config."""
        bunnies = self.list_bunnies(uid)
        config = self.config_service.get_config(uid)
        return happiness.bunnies_with_happiness(bunnies, config)

    def get_average_happiness(self, uid: str) -> int:
        return happiness.average_happiness(b['happiness'] for b in self.list_bunnies_with_happiness(uid))

    def delete_bunny(self, uid: str, bunny_id: str) -> None:
        """Delete the bunny document. Its events are removed by the cascade trigger."""
        bunny_ref = self._bunny_ref(uid, bunny_id)
        if not bunny_ref.get().exists:
            raise FileNotFoundError(f"Bunny {bunny_id} not found")
        bunny_ref.delete()
        logging.info(f"Bunny {bunny_id} deleted for user {uid}")

    # --- carrot ledger ---

    def give_carrots(self, uid: str, bunny_id: str, carrots: Any,
                     notes: Optional[str] = None, source: str = 'ui') -> CarrotEvent:
        """Append a CARROT_GIVEN event. The counter trigger updates eventCount asynchronously."""
        count = parse_carrots(carrots)
        if count is None:
            raise ValueError(f"carrots must be an integer between {MIN_CARROTS_PER_EVENT} and {MAX_CARROTS_PER_EVENT}")
        if not self._bunny_ref(uid, bunny_id).get().exists:
            raise FileNotFoundError(f"Bunny {bunny_id} not found")

        doc_ref = self._events_ref(uid, bunny_id).document()
        event = CarrotEvent(event_id=doc_ref.id, carrots=count, source=source, notes=notes)
        doc_ref.set(DateTimeUtils.for_firestore(event.to_dict()))
        logging.info(f"{count} carrots given to bunny {bunny_id} (event {doc_ref.id})")
        return event

    def list_events(self, uid: str, bunny_id: str, cursor: Optional[str] = None,
                    limit: int = EVENTS_PAGE_SIZE) -> Tuple[List[CarrotEvent], Optional[str]]:
        """
        One page of events, newest first.

        Returns (events, next_cursor); next_cursor is the id of the last event when
        the page is full, to be passed back as `cursor`, and None otherwise.
        """
        limit = max(1, min(limit, MAX_EVENTS_PAGE_SIZE))
        events_ref = self._events_ref(uid, bunny_id)
        query = events_ref.order_by('createdAt', direction=firestore.Query.DESCENDING)
        if cursor:
            cursor_doc = events_ref.document(cursor).get()
            if not cursor_doc.exists:
                raise ValueError(f"Invalid cursor '{cursor}'")
            query = query.start_after(cursor_doc)

        events = [CarrotEvent.from_dict(doc.id, doc.to_dict()) for doc in query.limit(limit).stream()]
        next_cursor = events[-1].event_id if len(events) == limit else None
        return events, next_cursor

    def delete_event(self, uid: str, bunny_id: str, event_id: str) -> None:
        """Remove a single event; the counter trigger decrements eventCount."""
        event_ref = self._events_ref(uid, bunny_id).document(event_id)
        if not event_ref.get().exists:
            raise FileNotFoundError(f"Event {event_id} not found")
        event_ref.delete()
        logging.info(f"Event {event_id} deleted from bunny {bunny_id}")
