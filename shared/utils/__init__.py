from shared.utils.http_security import SECURITY_HEADERS, apply_security_headers
from shared.utils.ids import new_uuid
from shared.utils.time import utc_after, utc_now
from shared.utils.validation import (
    ensure_supported_currency,
    normalize_currency_codes,
    require_non_empty,
)

__all__ = [
    "SECURITY_HEADERS",
    "apply_security_headers",
    "ensure_supported_currency",
    "new_uuid",
    "normalize_currency_codes",
    "require_non_empty",
    "utc_after",
    "utc_now",
]
