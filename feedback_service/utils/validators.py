import re
import uuid
from urllib.parse import urlparse

# Simple, pragmatic patterns
_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_SLUG_RE = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
_HEX_COLOR_RE = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")

def clean_str(val, max_len: int = 255) -> str | None:
    """
    Collapse whitespace, trim, enforce max length. Returns None if empty after cleaning.
    """
    if val is None:
        return None
    s = re.sub(r"\s+", " ", str(val)).strip()
    if not s:
        return None
    return s[:max_len]

def is_valid_email(val: str | None) -> bool:
    if not val:
        return True
    return bool(_EMAIL_RE.match(val))

def is_valid_slug(val: str | None) -> bool:
    if not val or len(val) > 100:
        return False
    return bool(_SLUG_RE.match(val))

def is_valid_color(val: str | None) -> bool:
    if not val:
        return True
    return bool(_HEX_COLOR_RE.match(val))

def is_valid_http_url(val: str | None) -> bool:
    """Absolute http(s) URL with a host. Empty is valid (field is optional)."""
    if not val:
        return True
    u = urlparse(val)
    return u.scheme in ("http", "https") and bool(u.netloc)

def is_valid_origin(val) -> bool:
    """'*' or scheme://host[:port] with nothing after it."""
    if val == "*":
        return True
    if not isinstance(val, str):
        return False
    u = urlparse(val)
    return u.scheme in ("http", "https") and bool(u.netloc) and u.path in ("", "/") and not u.query

def parse_uuid(val) -> uuid.UUID | None:
    """Return a UUID for str/UUID input, None when it does not parse."""
    if isinstance(val, uuid.UUID):
        return val
    if not isinstance(val, str):
        return None
    try:
        return uuid.UUID(val.strip())
    except ValueError:
        return None
