# uvbunny/models/bunny.py
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, Dict, Any
import logging

from uvbunny.utils.datetime_utils import DateTimeUtils


class BunnyColor(Enum):
    CREAM = "cream"
    GRAY = "gray"
    BROWN = "brown"
    WHITE = "white"
    BLACK = "black"
    PINK = "pink"


class BunnyMood(Enum):
    SAD = "sad"
    AVERAGE = "average"
    HAPPY = "happy"


@dataclass
class Bunny:
    """
    Document in 'users/{uid}/bunnies'.
    event_count is a server-maintained cache of the carrots given; the events
    subcollection is the source of truth.
    """
    bunny_id: str
    name: str
    color_class: BunnyColor
    event_count: int = 0
    created_at: datetime = field(default_factory=DateTimeUtils.now)

    @classmethod
    def from_dict(cls, bunny_id: str, data: Optional[Dict[str, Any]]) -> "Bunny":
        """Build a Bunny from a Firestore document, tolerating missing or legacy fields."""
        data = data or {}

        color_str = data.get('colorClass')
        try:
            color = BunnyColor(color_str)
        except ValueError:
            logging.warning(f"Invalid colorClass '{color_str}' for bunny {bunny_id}. Defaulting to cream.")
            color = BunnyColor.CREAM

        event_count = data.get('eventCount') or 0
        if not isinstance(event_count, (int, float)) or isinstance(event_count, bool):
            logging.warning(f"Non-numeric eventCount '{event_count}' for bunny {bunny_id}. Treating as 0.")
            event_count = 0

        return cls(
            bunny_id=bunny_id,
            name=data.get('name', ''),
            color_class=color,
            event_count=max(0, int(event_count)),
            created_at=DateTimeUtils.to_datetime(data.get('createdAt'), default=DateTimeUtils.now())
        )

    def to_dict(self) -> Dict[str, Any]:
        """Firestore representation (the id is the document id, not a field)."""
        return {
            "name": self.name,
            "colorClass": self.color_class.value,
            "eventCount": self.event_count,
            "createdAt": self.created_at,
        }
