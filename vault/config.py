"""Configuration settings for the Vault server."""

import os

from common.constants import DEFAULT_PRESIGNED_URL_TTL_SECONDS


def _env_bool(key: str, default: bool) -> bool:
    value = os.environ.get(key)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


VAULT_HOST = os.environ.get("VAULT_HOST", "0.0.0.0")

VAULT_PORT = int(os.environ.get("VAULT_PORT", "8000"))

VAULT_ENVIRONMENT = os.environ.get("VAULT_ENVIRONMENT", "development")

S3_ENDPOINT = os.environ.get("VAULT_S3_ENDPOINT", "minio:9000")

S3_ACCESS_KEY = os.environ.get("VAULT_S3_ACCESS_KEY", "minioadmin")

S3_SECRET_KEY = os.environ.get("VAULT_S3_SECRET_KEY", "minioadmin")

S3_BUCKET = os.environ.get("VAULT_S3_BUCKET", "vault-uploads")

S3_REGION = os.environ.get("VAULT_S3_REGION") or None

S3_SECURE = _env_bool("VAULT_S3_SECURE", False)

S3_SERVER_SIDE_ENCRYPTION = _env_bool("VAULT_S3_SERVER_SIDE_ENCRYPTION", True)

STAGING_DIR = os.environ.get("VAULT_STAGING_DIR", "./data/staging")

MAX_FILE_SIZE = int(os.environ.get("VAULT_MAX_FILE_SIZE", str(10 * 1024 * 1024)))

MAX_BATCH_FILES = int(os.environ.get("VAULT_MAX_BATCH_FILES", "5"))

ALLOWED_FILE_TYPES = [
    mime_type.strip()
    for mime_type in os.environ.get(
        "VAULT_ALLOWED_FILE_TYPES",
        "image/jpeg,image/png,image/gif,image/webp,application/pdf,text/plain",
    ).split(",")
    if mime_type.strip()
]

BATCH_CONCURRENCY = max(1, int(os.environ.get("VAULT_BATCH_CONCURRENCY", "4")))

PRESIGNED_URL_TTL = int(os.environ.get("VAULT_PRESIGNED_URL_TTL", str(DEFAULT_PRESIGNED_URL_TTL_SECONDS)))

ORPHAN_LOG_PATH = os.environ.get("VAULT_ORPHAN_LOG_PATH", "./data/orphaned_objects.json")

ORPHAN_CLEANUP_INTERVAL_SECONDS = int(os.environ.get("VAULT_ORPHAN_CLEANUP_INTERVAL_SECONDS", str(6 * 3600)))

SNAPSHOT_PATH = os.environ.get("VAULT_SNAPSHOT_PATH") or None
