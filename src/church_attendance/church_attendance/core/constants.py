"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_MEMBERSHIP_PREFIX = "EA"
ADULT_AGE_THRESHOLD = 18
DEFAULT_BULK_MAX_WORKERS = 4
DEFAULT_ACTIVITY_LIMIT = 20
DEFAULT_FOLLOW_UP_LIMIT = 100
MAX_MEMBERSHIP_ID_ATTEMPTS = 20
MAX_SYNC_RETRIES = 5

ABSENTEE_MESSAGE = (
    "Hello {name}, we noticed you were absent from {service} on {date}. "
    "We hope you're doing well and look forward to seeing you next time!"
)
