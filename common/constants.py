"""Project-wide constants (image bounds, URL lifetimes, staging sizes)."""

ANONYMOUS_OWNER: str = "anonymous"

STORAGE_KEY_PREFIX: str = "uploads"

STAGING_PIECE_SIZE_BYTES: int = 1024 * 1024  # 1 MiB pieces when spooling to disk

MAX_IMAGE_DIMENSION: int = 2048
JPEG_QUALITY: int = 85
WEBP_QUALITY: int = 85
PNG_COMPRESS_LEVEL: int = 8

# Types that are never re-encoded (animated or vector formats)
REENCODE_EXEMPT_TYPES: frozenset = frozenset({"image/gif", "image/svg+xml"})

DEFAULT_PRESIGNED_URL_TTL_SECONDS: int = 3600
DEFAULT_SHARE_TTL_SECONDS: int = 86400

ACCESS_URL_MIN_TTL_SECONDS: int = 300
SHARE_URL_MIN_TTL_SECONDS: int = 3600
URL_MAX_TTL_SECONDS: int = 7 * 24 * 3600

RECENT_UPLOAD_WINDOW_SECONDS: int = 24 * 3600

DEFAULT_PAGE_LIMIT: int = 20
MAX_PAGE_LIMIT: int = 100
MAX_SEARCH_LENGTH: int = 100
