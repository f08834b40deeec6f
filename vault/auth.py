"""Request identity helpers."""

import re
from typing import Optional

from fastapi import Header

from common.constants import ANONYMOUS_OWNER
from vault.exceptions import ValidationError

# ASCII subset valid in S3 object tag values, metadata headers and a key segment
_OWNER_ID_PATTERN = re.compile(r"^[A-Za-z0-9_.:@+=-]{1,128}$")


async def get_owner_id(x_user_id: Optional[str] = Header(None)) -> str:
    """
    FastAPI dependency resolving the uploading user.

    Authentication is handled outside this service; requests without an
    X-User-Id header belong to the anonymous owner.

    Returns:
        Owner id string

    Raises:
        ValidationError: If the header holds characters that cannot be stored
            as an object tag or metadata value
    """
    if x_user_id is None or not x_user_id.strip():
        return ANONYMOUS_OWNER

    owner_id = x_user_id.strip()
    if not _OWNER_ID_PATTERN.match(owner_id) or owner_id in (".", ".."):
        raise ValidationError("Invalid X-User-Id header")
    return owner_id
