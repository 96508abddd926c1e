# uvbunny/models/user_config.py
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Dict, Any

from uvbunny.core.constants import (
    DEFAULT_POINTS_PER_CARROT,
    DEFAULT_MAX_HAPPINESS_CARROTS,
    DEFAULT_MOOD_SAD_THRESHOLD,
    DEFAULT_MOOD_AVERAGE_THRESHOLD,
)
from uvbunny.utils.datetime_utils import DateTimeUtils


@dataclass
class UserConfig:
    """
    Document 'users/{uid}/config/current'.
    Always fully populated: absent documents and absent fields read as defaults.
    """
    points_per_carrot: int = DEFAULT_POINTS_PER_CARROT
    max_happiness_points: Optional[int] = None
    mood_sad_threshold: int = DEFAULT_MOOD_SAD_THRESHOLD
    mood_average_threshold: int = DEFAULT_MOOD_AVERAGE_THRESHOLD
    updated_at: datetime = field(default_factory=DateTimeUtils.now)

    @property
    def effective_max_happiness_points(self) -> int:
        """The progress bar cap: the configured max, or 100 carrots worth of points."""
        if self.max_happiness_points is not None:
            return self.max_happiness_points
        return self.points_per_carrot * DEFAULT_MAX_HAPPINESS_CARROTS

    @classmethod
    def defaults(cls) -> "UserConfig":
        return cls()

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "UserConfig":
        """Read a config document; None (no document) yields the defaults."""
        if not data:
            return cls.defaults()

        sad = data.get('moodSadThreshold')
        average = data.get('moodAverageThreshold')
        return cls(
            # A stored 0 is as good as missing.
            points_per_carrot=data.get('pointsPerCarrot') or DEFAULT_POINTS_PER_CARROT,
            max_happiness_points=data.get('maxHappinessPoints'),
            mood_sad_threshold=DEFAULT_MOOD_SAD_THRESHOLD if sad is None else sad,
            mood_average_threshold=DEFAULT_MOOD_AVERAGE_THRESHOLD if average is None else average,
            updated_at=DateTimeUtils.to_datetime(data.get('updatedAt'), default=DateTimeUtils.now())
        )

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "pointsPerCarrot": self.points_per_carrot,
            "moodSadThreshold": self.mood_sad_threshold,
            "moodAverageThreshold": self.mood_average_threshold,
            "updatedAt": self.updated_at,
        }
        if self.max_happiness_points is not None:
            data["maxHappinessPoints"] = self.max_happiness_points
        return data

    def to_response(self) -> Dict[str, Any]:
        response = self.to_dict()
        response["maxHappinessPoints"] = self.max_happiness_points
        response["effectiveMaxHappinessPoints"] = self.effective_max_happiness_points
        return response
