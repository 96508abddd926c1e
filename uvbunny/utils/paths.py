# uvbunny/utils/paths.py
"""
Firestore path builders. Every collection and document path used by the API
and the Cloud Functions is built here.
"""

USERS_COLLECTION = 'users'
CONFIG_DOCUMENT_ID = 'current'
GLOBAL_STATS_DOCUMENT_ID = 'global'

# Trigger patterns, with the same placeholders the functions read from event.params
USER_DOCUMENT_PATTERN = 'users/{uid}'
CONFIG_DOCUMENT_PATTERN = 'users/{uid}/config/current'
BUNNY_DOCUMENT_PATTERN = 'users/{uid}/bunnies/{bunnyId}'
EVENT_DOCUMENT_PATTERN = 'users/{uid}/bunnies/{bunnyId}/events/{eventId}'


def get_user_path(uid: str) -> str:
    return f"users/{uid}"


def get_user_config_path(uid: str) -> str:
    return f"users/{uid}/config/{CONFIG_DOCUMENT_ID}"


def get_bunnies_collection_path(uid: str) -> str:
    return f"users/{uid}/bunnies"


def get_bunny_path(uid: str, bunny_id: str) -> str:
    return f"users/{uid}/bunnies/{bunny_id}"


def get_events_collection_path(uid: str, bunny_id: str) -> str:
    return f"users/{uid}/bunnies/{bunny_id}/events"


def get_counter_marks_collection_path(uid: str, bunny_id: str) -> str:
    """Per-event records of counter operations already applied (redelivery guard)."""
    return f"users/{uid}/bunnies/{bunny_id}/counterMarks"


def get_counter_mark_path(uid: str, bunny_id: str, event_id: str) -> str:
    return f"users/{uid}/bunnies/{bunny_id}/counterMarks/{event_id}"


def get_global_stats_path(uid: str) -> str:
    return f"users/{uid}/stats/{GLOBAL_STATS_DOCUMENT_ID}"
