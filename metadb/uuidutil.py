"""UUID validation and encoding."""

from __future__ import annotations

import re
import uuid

NIL_UUID = "00000000-0000-0000-0000-000000000000"

_HEX32 = re.compile(r"[0-9a-fA-F]{32}")
_DASHES = (8, 13, 18, 23)


def is_uuid(s: str) -> bool:
    """Report whether s is a UUID in standard, braced, URN or plain-hex form."""
    if len(s) == 45:
        if s[:9].lower() != "urn:uuid:":
            return False
        s = s[9:]
    elif len(s) == 38:
        if s[0] != "{" or s[-1] != "}":
            return False
        s = s[1:-1]
    elif len(s) == 32:
        return _HEX32.fullmatch(s) is not None
    if len(s) != 36 or any(s[i] != "-" for i in _DASHES):
        return False
    return _HEX32.fullmatch(s.replace("-", "")) is not None


def encode_uuid(s: str) -> uuid.UUID:
    """Encode a UUID given as 36 characters with dashes or 32 hex digits."""
    if len(s) == 36:
        digits = s[0:8] + s[9:13] + s[14:18] + s[19:23] + s[24:]
    elif len(s) == 32:
        digits = s
    else:
        raise ValueError(f"cannot parse UUID {s}")
    if _HEX32.fullmatch(digits) is None:
        raise ValueError(f"cannot parse UUID {s}")
    return uuid.UUID(hex=digits)


def encode_nil_uuid() -> uuid.UUID:
    """Return the encoded nil UUID."""
    return encode_uuid(NIL_UUID)