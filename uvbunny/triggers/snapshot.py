# uvbunny/triggers/snapshot.py
"""
Scheduled analytics: per-user average happiness into users/{uid}/stats/global.
"""

import logging
from dataclasses import dataclass, field
from typing import List
from firebase_admin import firestore

from uvbunny.api.config.services import ConfigService
from uvbunny.models.bunny import Bunny
from uvbunny.models.global_stats import GlobalStats
from uvbunny.services.happiness import average_happiness, derive_happiness
from uvbunny.utils.datetime_utils import DateTimeUtils
from uvbunny.utils.paths import USERS_COLLECTION, get_bunnies_collection_path, get_global_stats_path

logger = logging.getLogger(__name__)


@dataclass
class SnapshotReport:
    processed: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)


class AnalyticsSnapshotter:
    """
    Recomputes every user's average happiness with that user's current config.
    A failure for one user is logged and the run moves on to the next user.
    """

    def __init__(self, config_service: ConfigService, db=None):
        self.db = db or firestore.client()
        self.config_service = config_service

    def snapshot_user(self, uid: str) -> GlobalStats:
        config = self.config_service.get_config(uid)
        bunnies = [
            Bunny.from_dict(doc.id, doc.to_dict())
            for doc in self.db.collection(get_bunnies_collection_path(uid)).stream()
        ]
        stats = GlobalStats(
            avg_happiness=average_happiness(derive_happiness(b.event_count, config).happiness for b in bunnies),
            updated_at=DateTimeUtils.now()
        )
        self.db.document(get_global_stats_path(uid)).set(DateTimeUtils.for_firestore(stats.to_dict()), merge=True)
        return stats

    def run(self) -> SnapshotReport:
        report = SnapshotReport()
        # list_documents() also yields users that only exist through subcollections.
        for user_ref in self.db.collection(USERS_COLLECTION).list_documents():
            uid = user_ref.id
            try:
                self.snapshot_user(uid)
                report.processed.append(uid)
            except Exception as e:
                logger.error(f"Error updating analytics snapshot for user {uid}: {e}", exc_info=True)
                report.failed.append(uid)

        logger.info(f"Updated analytics for {len(report.processed)} users ({len(report.failed)} failed)")
        return report
