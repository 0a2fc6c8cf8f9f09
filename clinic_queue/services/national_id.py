"""National ID (NRIC) protection.

The raw identifier only lives inside a single profile write: it is
normalized, hashed with a server-held key for deduplication and masked
for display. Neither the raw value nor anything derived from its middle
characters is logged, stored or returned.
"""
from typing import NamedTuple, Optional
import hashlib
import hmac

from ..core.config import settings
from ..core.errors import ClinicConfigurationError

MASK_CHAR = "*"
MIN_MASK_LENGTH = 3

class ProtectedNationalId(NamedTuple):
    hash: str
    masked: str

def normalize_national_id(raw: str) -> str:
    return raw.strip().upper()

def hash_national_id(normalized: str, secret: str) -> str:
    """HMAC-SHA256 hex digest keyed with the server secret."""
    return hmac.new(
        secret.encode("utf-8"),
        normalized.encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()

def mask_national_id(normalized: str) -> str:
    """First and last character kept, one asterisk per hidden character.

    "S1234567A" -> "S*******A". Shorter than three characters masks
    entirely to "***".
    """
    if len(normalized) < MIN_MASK_LENGTH:
        return MASK_CHAR * MIN_MASK_LENGTH
    return normalized[0] + MASK_CHAR * (len(normalized) - 2) + normalized[-1]

def protect_national_id(raw: str, secret: Optional[str] = None) -> ProtectedNationalId:
    secret = secret or settings.NRIC_HASH_SECRET
    if not secret:
        raise ClinicConfigurationError("NRIC_HASH_SECRET is not configured")

    normalized = normalize_national_id(raw)
    return ProtectedNationalId(
        hash=hash_national_id(normalized, secret),
        masked=mask_national_id(normalized),
    )
