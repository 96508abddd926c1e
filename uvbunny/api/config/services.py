# uvbunny/api/config/services.py
import logging
import math
from typing import Dict, Any, Optional
from firebase_admin import firestore
from firebase_admin.firestore import Transaction

from uvbunny.core.constants import (
    MIN_POINTS_PER_CARROT,
    MAX_POINTS_PER_CARROT,
    MIN_THRESHOLD,
    MAX_THRESHOLD,
)
from uvbunny.models.user_config import UserConfig
from uvbunny.utils.datetime_utils import DateTimeUtils
from uvbunny.utils.paths import get_user_config_path


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def validate_points_per_carrot(points: Any) -> int:
    """Reject (never clamp) anything that is not an integer in [1, 10]."""
    if not _is_number(points):
        raise ValueError("pointsPerCarrot must be a number")
    clamped = max(MIN_POINTS_PER_CARROT, min(MAX_POINTS_PER_CARROT, round(points)))
    if clamped != points:
        raise ValueError(f"pointsPerCarrot must be an integer between {MIN_POINTS_PER_CARROT} and {MAX_POINTS_PER_CARROT}")
    return int(clamped)


def validate_max_happiness_points(max_points: Any) -> int:
    if not _is_number(max_points) or int(max_points) != max_points:
        raise ValueError("maxHappinessPoints must be an integer")
    if max_points < 1:
        raise ValueError("maxHappinessPoints must be greater than 0")
    return int(max_points)


def validate_mood_thresholds(sad: Any, average: Any) -> None:
    for name, value in (("moodSadThreshold", sad), ("moodAverageThreshold", average)):
        if not _is_number(value) or value < MIN_THRESHOLD or value > MAX_THRESHOLD:
            raise ValueError(f"{name} must be between {MIN_THRESHOLD} and {MAX_THRESHOLD}")
    if sad >= average:
        raise ValueError("moodSadThreshold must be lower than moodAverageThreshold")


class ConfigService:
    """Per-user happiness settings: defaulted reads and validated merge-writes."""
    def __init__(self, db=None):
        self.db = db or firestore.client()
        logging.info("ConfigService initialized.")

    def _config_ref(self, uid: Optional[str]):
        if not uid:
            raise PermissionError("User not authenticated")
        return self.db.document(get_user_config_path(uid))

    def _merge_write(self, uid: str, update_data: Dict[str, Any]) -> None:
        """set(merge=True) creates the document on first save and leaves other fields alone."""
        update_data['updatedAt'] = DateTimeUtils.now()
        self._config_ref(uid).set(DateTimeUtils.for_firestore(update_data), merge=True)
        logging.info(f"Config updated for user {uid} with fields: {sorted(update_data.keys())}")

    def get_config(self, uid: str) -> UserConfig:
        """The user's config; a user without a config document gets the defaults."""
        doc = self._config_ref(uid).get()
        if not doc.exists:
            return UserConfig.defaults()
        return UserConfig.from_dict(doc.to_dict())

    def update_points_per_carrot(self, uid: str, points: Any) -> UserConfig:
        points = validate_points_per_carrot(points)
        self._merge_write(uid, {'pointsPerCarrot': points})
        return self.get_config(uid)

    def update_max_happiness_points(self, uid: str, max_points: Any) -> UserConfig:
        max_points = validate_max_happiness_points(max_points)
        self._merge_write(uid, {'maxHappinessPoints': max_points})
        return self.get_config(uid)

    def update_mood_thresholds(self, uid: str, sad: Any, average: Any) -> UserConfig:
        validate_mood_thresholds(sad, average)
        self._merge_write(uid, {'moodSadThreshold': sad, 'moodAverageThreshold': average})
        return self.get_config(uid)

    def update_config(self, uid: str, fields: Dict[str, Any]) -> UserConfig:
        """
        Partial update of several settings at once. Every supplied field is
        validated before anything is written; a single threshold is checked
        against the stored value of the other one.
        """
        if not fields:
            raise ValueError("No config fields to update")

        update_data: Dict[str, Any] = {}
        if 'pointsPerCarrot' in fields:
            update_data['pointsPerCarrot'] = validate_points_per_carrot(fields['pointsPerCarrot'])
        if 'maxHappinessPoints' in fields:
            update_data['maxHappinessPoints'] = validate_max_happiness_points(fields['maxHappinessPoints'])
        if 'moodSadThreshold' in fields or 'moodAverageThreshold' in fields:
            current = self.get_config(uid)
            sad = fields.get('moodSadThreshold', current.mood_sad_threshold)
            average = fields.get('moodAverageThreshold', current.mood_average_threshold)
            validate_mood_thresholds(sad, average)
            update_data['moodSadThreshold'] = sad
            update_data['moodAverageThreshold'] = average

        if not update_data:
            raise ValueError("No supported config fields to update")

        self._merge_write(uid, update_data)
        return self.get_config(uid)

    def bootstrap_defaults(self, uid: str) -> bool:
        """
        Write the default config for a new user. Returns False, writing nothing,
        when a config document already exists.
        """
        config_ref = self._config_ref(uid)
        transaction = self.db.transaction()

        @firestore.transactional
        def _bootstrap_in_transaction(transaction: Transaction) -> bool:
            snapshot = config_ref.get(transaction=transaction)
            if snapshot.exists:
                return False
            defaults = DateTimeUtils.for_firestore(UserConfig.defaults().to_dict())
            transaction.set(config_ref, defaults, merge=True)
            return True

        created = _bootstrap_in_transaction(transaction)
        if created:
            logging.info(f"Initialized default config for user {uid}")
        else:
            logging.info(f"Config already present for user {uid}; bootstrap skipped")
        return created
