# uvbunny/models/global_stats.py
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Any

from uvbunny.utils.datetime_utils import DateTimeUtils


@dataclass
class GlobalStats:
    """
    Document 'users/{uid}/stats/global'. Written only by the analytics snapshot job.
    """
    avg_happiness: int = 0
    updated_at: datetime = field(default_factory=DateTimeUtils.now)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GlobalStats":
        return cls(
            avg_happiness=int(data.get('avgHappiness') or 0),
            updated_at=DateTimeUtils.to_datetime(data.get('updatedAt'), default=DateTimeUtils.now())
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"avgHappiness": self.avg_happiness, "updatedAt": self.updated_at}
