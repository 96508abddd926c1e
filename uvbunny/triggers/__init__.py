# uvbunny/triggers/__init__.py
"""
Handlers behind the Cloud Functions in main.py.

Each handler takes plain arguments (uid, ids, document data) so it can run
without the functions runtime; main.py only unpacks the trigger event.
"""

from .counter import CounterMaintainer
from .cascade import CascadeDeleter
from .bootstrap import UserBootstrapper
from .cache_refresh import HappinessCacheRefresher
from .snapshot import AnalyticsSnapshotter, SnapshotReport

__all__ = [
    'CounterMaintainer',
    'CascadeDeleter',
    'UserBootstrapper',
    'HappinessCacheRefresher',
    'AnalyticsSnapshotter',
    'SnapshotReport'
]
