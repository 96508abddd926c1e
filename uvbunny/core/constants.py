# uvbunny/core/constants.py
"""Domain constants shared by the API and the Cloud Functions."""

# Carrot events
CARROT_GIVEN = "CARROT_GIVEN"
MIN_CARROTS_PER_EVENT = 1
MAX_CARROTS_PER_EVENT = 50
EVENT_SOURCES = ("ui", "function")

# Bunnies
BUNNY_NAME_MAX_LENGTH = 40
BUNNY_COLORS = ("cream", "gray", "brown", "white", "black", "pink")

# Config defaults and bounds
DEFAULT_POINTS_PER_CARROT = 3
MIN_POINTS_PER_CARROT = 1
MAX_POINTS_PER_CARROT = 10
# maxHappinessPoints defaults to pointsPerCarrot * this (100 carrots worth)
DEFAULT_MAX_HAPPINESS_CARROTS = 100
DEFAULT_MOOD_SAD_THRESHOLD = 20
DEFAULT_MOOD_AVERAGE_THRESHOLD = 49
MIN_THRESHOLD = 0
MAX_THRESHOLD = 100

# Paging / batching
EVENTS_PAGE_SIZE = 10
MAX_EVENTS_PAGE_SIZE = 50
# Firestore caps a write batch at 500 operations.
BATCH_LIMIT = 500

ANALYTICS_SCHEDULE = "every 60 minutes"

# Counter marks carry expireAt = now + this, for a Firestore TTL policy on
# counterMarks. Event triggers are redelivered for at most 7 days.
COUNTER_MARK_TTL_DAYS = 7
