import re

_TAG_CHARS = re.compile(r"[<>]")
_JS_PROTOCOL = re.compile(r"javascript:", re.IGNORECASE)
_EVENT_HANDLER = re.compile(r"on\w+\s*=", re.IGNORECASE)
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def sanitize_input(value, max_length: int = 500):
    if not isinstance(value, str):
        return value
    value = value.strip()
    value = _TAG_CHARS.sub("", value)
    value = _JS_PROTOCOL.sub("", value)
    value = _EVENT_HANDLER.sub("", value)
    return value[:max_length]


def sanitize_email(value) -> str:
    cleaned = sanitize_input(value or "")
    return cleaned if EMAIL_PATTERN.match(cleaned) else ""


def sanitize_phone(value) -> str:
    return re.sub(r"[^\d+\-\s()]", "", value or "")[:20]


def sanitize_pincode(value) -> str:
    return re.sub(r"\D", "", value or "")[:6]

