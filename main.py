# main.py
"""
Cloud Functions for Firebase (Python runtime) entry points.

The handlers live in uvbunny.triggers; each function here only unpacks the
trigger event and delegates.
"""

import json
import os

from firebase_admin import firestore
from firebase_functions import firestore_fn, https_fn, options, scheduler_fn

from uvbunny import create_app, init_firebase
from uvbunny.api.config.services import ConfigService
from uvbunny.api.health.routes import health_payload
from uvbunny.core.config import Config
from uvbunny.core.constants import ANALYTICS_SCHEDULE
from uvbunny.triggers.counter import RETRY_ON_CREATE, RETRY_ON_DELETE
from uvbunny.triggers import (
    AnalyticsSnapshotter,
    CascadeDeleter,
    CounterMaintainer,
    HappinessCacheRefresher,
    UserBootstrapper,
)
from uvbunny.utils.paths import (
    BUNNY_DOCUMENT_PATTERN,
    CONFIG_DOCUMENT_PATTERN,
    EVENT_DOCUMENT_PATTERN,
    USER_DOCUMENT_PATTERN,
)

options.set_global_options(region=os.getenv('FUNCTIONS_REGION', 'us-central1'), max_instances=10)

init_firebase(Config.FIREBASE_CREDENTIALS_PATH, Config.FIREBASE_PROJECT_ID)
db = firestore.client()

config_service = ConfigService(db=db)
counter_maintainer = CounterMaintainer(db=db)
cascade_deleter = CascadeDeleter(db=db)
user_bootstrapper = UserBootstrapper(config_service)
cache_refresher = HappinessCacheRefresher(db=db, enabled=Config.CACHE_HAPPINESS_ON_CONFIG_UPDATE)
analytics_snapshotter = AnalyticsSnapshotter(config_service, db=db)
flask_app = create_app(os.getenv('FLASK_ENV', 'production'), db=db)


def _data(snapshot):
    return snapshot.to_dict() if snapshot is not None else None


# Counter triggers re-raise when the bunny is missing; only creates are redelivered.
@firestore_fn.on_document_created(document=EVENT_DOCUMENT_PATTERN, retry=RETRY_ON_CREATE)
def on_carrot_event_created(event: firestore_fn.Event[firestore_fn.DocumentSnapshot | None]) -> None:
    params = event.params
    counter_maintainer.on_event_created(params['uid'], params['bunnyId'], params['eventId'], _data(event.data))


@firestore_fn.on_document_deleted(document=EVENT_DOCUMENT_PATTERN, retry=RETRY_ON_DELETE)
def on_carrot_event_deleted(event: firestore_fn.Event[firestore_fn.DocumentSnapshot | None]) -> None:
    params = event.params
    counter_maintainer.on_event_deleted(params['uid'], params['bunnyId'], params['eventId'], _data(event.data))


@firestore_fn.on_document_deleted(document=BUNNY_DOCUMENT_PATTERN)
def on_bunny_deleted_cascade(event: firestore_fn.Event[firestore_fn.DocumentSnapshot | None]) -> None:
    cascade_deleter.on_bunny_deleted(event.params['uid'], event.params['bunnyId'])


@firestore_fn.on_document_created(document=USER_DOCUMENT_PATTERN)
def on_user_created_bootstrap(event: firestore_fn.Event[firestore_fn.DocumentSnapshot | None]) -> None:
    user_bootstrapper.on_user_created(event.params['uid'])


@firestore_fn.on_document_updated(document=CONFIG_DOCUMENT_PATTERN)
def on_config_updated(event: firestore_fn.Event[firestore_fn.Change[firestore_fn.DocumentSnapshot | None]]) -> None:
    after = _data(event.data.after) if event.data is not None else None
    cache_refresher.on_config_updated(event.params['uid'], after)


@scheduler_fn.on_schedule(schedule=ANALYTICS_SCHEDULE)
def on_bunny_analytics_snapshot(event: scheduler_fn.ScheduledEvent) -> None:
    analytics_snapshotter.run()


@https_fn.on_request()
def api_health_check(req: https_fn.Request) -> https_fn.Response:
    return https_fn.Response(json.dumps(health_payload("UVbunny Functions")), status=200,
                             content_type='application/json')


@https_fn.on_request()
def api(req: https_fn.Request) -> https_fn.Response:
    """The Flask REST API served as one HTTPS function."""
    with flask_app.request_context(req.environ):
        return flask_app.full_dispatch_request()
