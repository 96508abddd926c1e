# uvbunny/models/carrot_event.py
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Dict, Any

from uvbunny.core.constants import CARROT_GIVEN, MIN_CARROTS_PER_EVENT, MAX_CARROTS_PER_EVENT
from uvbunny.utils.datetime_utils import DateTimeUtils


def parse_carrots(value: Any) -> Optional[int]:
    """
    Return the carrot count as an int when it is an integer in [1, 50], else None.
    Integral floats (5.0) are accepted since JS clients cannot tell them apart.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, float):
        if not value.is_integer():
            return None
        value = int(value)
    if not isinstance(value, int):
        return None
    if value < MIN_CARROTS_PER_EVENT or value > MAX_CARROTS_PER_EVENT:
        return None
    return value


@dataclass
class CarrotEvent:
    """
    Document in 'users/{uid}/bunnies/{bunnyId}/events'. Append-only.
    """
    event_id: str
    carrots: int
    type: str = CARROT_GIVEN
    created_at: datetime = field(default_factory=DateTimeUtils.now)
    source: Optional[str] = None
    notes: Optional[str] = None

    @classmethod
    def from_dict(cls, event_id: str, data: Optional[Dict[str, Any]]) -> "CarrotEvent":
        data = data or {}
        return cls(
            event_id=event_id,
            carrots=data.get('carrots', 0),
            type=data.get('type', CARROT_GIVEN),
            created_at=DateTimeUtils.to_datetime(data.get('createdAt'), default=DateTimeUtils.now()),
            source=data.get('source'),
            notes=data.get('notes')
        )

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "type": self.type,
            "carrots": self.carrots,
            "createdAt": self.created_at,
        }
        # Optional fields are omitted rather than stored as null.
        if self.source is not None:
            data["source"] = self.source
        if self.notes is not None:
            data["notes"] = self.notes
        return data
