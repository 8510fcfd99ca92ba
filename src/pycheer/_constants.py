"""Internal constants shared across the library."""

USER_AGENT = "pycheer"

# PostgREST: single-row select matched zero rows.
NO_ROWS_CODE = "PGRST116"

DEFAULT_SCHEMA = "public"
DEFAULT_STORAGE_BUCKET = "uploads"
DEFAULT_PUBLIC_IMAGES_PREFIX = "public"
DEFAULT_PUBLIC_IMAGES_LIMIT = 100
DEFAULT_REQUEST_TIMEOUT = 30.0

#: Freshness window used by the provinces and coaches slices (seconds).
DEFAULT_MAX_AGE_SECONDS: float = 10 * 60

IMAGE_EXTENSIONS: tuple[str, ...] = (".jpg", ".jpeg", ".png", ".webp")

# ------------------------------------------------------------------
# Table names
# ------------------------------------------------------------------

TABLE_COMPETITIONS = "competitions"
TABLE_DIVISIONS = "divisions"
TABLE_NEWS = "news"
TABLE_PROVINCES = "provinces"
TABLE_JUDGES = "judges"
TABLE_LICENSE_COURSES = "license_courses"
TABLE_COACHES = "coaches"
TABLE_PROFILES = "profiles"

# ------------------------------------------------------------------
# Auth state-change events pushed to on_auth_state_change listeners
# ------------------------------------------------------------------

EVENT_INITIAL_SESSION = "INITIAL_SESSION"
EVENT_SIGNED_IN = "SIGNED_IN"
EVENT_SIGNED_OUT = "SIGNED_OUT"
EVENT_TOKEN_REFRESHED = "TOKEN_REFRESHED"
EVENT_USER_UPDATED = "USER_UPDATED"
