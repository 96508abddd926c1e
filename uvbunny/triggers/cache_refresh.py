# uvbunny/triggers/cache_refresh.py
import logging
from typing import Any, Dict, Optional
from firebase_admin import firestore

from uvbunny.core.constants import BATCH_LIMIT
from uvbunny.models.user_config import UserConfig
from uvbunny.services.happiness import compute_happiness
from uvbunny.utils.datetime_utils import DateTimeUtils
from uvbunny.utils.paths import get_bunnies_collection_path

logger = logging.getLogger(__name__)


class HappinessCacheRefresher:
    """
    Writes cachedHappiness/cachedAt onto every bunny after a config change.

    The API always derives happiness at read time and never reads these fields;
    they exist for consumers reading Firestore directly. Best-effort only.
    """

    def __init__(self, db=None, enabled: bool = True):
        self.db = db or firestore.client()
        self.enabled = enabled

    def on_config_updated(self, uid: str, after: Optional[Dict[str, Any]]) -> int:
        """Returns the number of bunnies refreshed."""
        if not self.enabled:
            return 0

        config = UserConfig.from_dict(after)
        refreshed = 0
        try:
            bunnies = list(self.db.collection(get_bunnies_collection_path(uid)).stream())
            if not bunnies:
                return 0

            cached_at = DateTimeUtils.now()
            for start in range(0, len(bunnies), BATCH_LIMIT):
                batch = self.db.batch()
                for doc in bunnies[start:start + BATCH_LIMIT]:
                    count = (doc.to_dict() or {}).get('eventCount') or 0
                    batch.update(doc.reference, {
                        'cachedHappiness': compute_happiness(count, config.points_per_carrot),
                        'cachedAt': cached_at,
                    })
                batch.commit()
                refreshed += len(bunnies[start:start + BATCH_LIMIT])

            logger.info(f"Updated cached happiness for {refreshed} bunnies (ppc={config.points_per_carrot})")
        except Exception as e:
            logger.error(f"Error updating cached happiness for user {uid}: {e}", exc_info=True)
        return refreshed
