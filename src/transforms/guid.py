"""Places GUID generation.

Places GUIDs are 12 URL-safe base64 characters encoding 9 random bytes.
"""

from __future__ import annotations

import base64
import secrets
from typing import Callable

from core.constants import GUID_BYTE_LENGTH

RandomBytes = Callable[[int], bytes]


def generate_guid(random_bytes: RandomBytes = secrets.token_bytes) -> str:
    """Generate a new places GUID.

    Args:
        random_bytes: Source of random bytes, called with the byte count.

    Returns:
        12-character URL-safe identifier.
    """
    buffer = random_bytes(GUID_BYTE_LENGTH)
    return base64.urlsafe_b64encode(buffer).decode("ascii")
