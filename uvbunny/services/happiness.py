# uvbunny/services/happiness.py
"""
Happiness derivation.

Happiness is never stored. It is computed from a bunny's eventCount and the
owner's current config every time it is read, so a config change retroactively
changes every bunny's happiness without touching bunny or event documents.
"""

import math
from dataclasses import dataclass
from typing import Dict, Any, Iterable, List

from uvbunny.models.bunny import Bunny, BunnyMood
from uvbunny.models.user_config import UserConfig


@dataclass(frozen=True)
class HappinessView:
    happiness: int
    progress_percent: int
    mood: BunnyMood


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive values (Python's round() is banker's rounding)."""
    return int(math.floor(value + 0.5))


def compute_happiness(event_count: int, points_per_carrot: int) -> int:
    return event_count * points_per_carrot


def compute_progress_percent(happiness: int, max_happiness_points: int) -> int:
    """Share of the cap reached, rounded and clamped to [0, 100]."""
    if max_happiness_points <= 0:
        return 100 if happiness > 0 else 0
    percent = round_half_up(happiness / max_happiness_points * 100)
    return max(0, min(100, percent))


def classify_mood(progress_percent: int, sad_threshold: float, average_threshold: float) -> BunnyMood:
    if progress_percent < sad_threshold:
        return BunnyMood.SAD
    if progress_percent < average_threshold:
        return BunnyMood.AVERAGE
    return BunnyMood.HAPPY


def derive_happiness(event_count: int, config: UserConfig) -> HappinessView:
    """Map (eventCount, config) to happiness, progress percentage and mood."""
    happiness = compute_happiness(event_count, config.points_per_carrot)
    progress = compute_progress_percent(happiness, config.effective_max_happiness_points)
    mood = classify_mood(progress, config.mood_sad_threshold, config.mood_average_threshold)
    return HappinessView(happiness=happiness, progress_percent=progress, mood=mood)


def average_happiness(happiness_values: Iterable[int]) -> int:
    """Rounded mean of per-bunny happiness; 0 when there are no bunnies."""
    values = list(happiness_values)
    if not values:
        return 0
    return round_half_up(sum(values) / len(values))


def bunny_with_happiness(bunny: Bunny, config: UserConfig) -> Dict[str, Any]:
    """API/stream representation of a bunny including its derived fields."""
    view = derive_happiness(bunny.event_count, config)
    return {
        "id": bunny.bunny_id,
        "name": bunny.name,
        "colorClass": bunny.color_class.value,
        "eventCount": bunny.event_count,
        "createdAt": bunny.created_at,
        "happiness": view.happiness,
        "mood": view.mood.value,
        "progressBarPercent": view.progress_percent,
    }


def bunnies_with_happiness(bunnies: Iterable[Bunny], config: UserConfig) -> List[Dict[str, Any]]:
    return [bunny_with_happiness(bunny, config) for bunny in bunnies]
