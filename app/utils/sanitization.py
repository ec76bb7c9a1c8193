import re

_TAG_RE = re.compile(r'<[^>]*>')


def sanitize_string(v):
    if not isinstance(v, str):
        return v
    # Drop HTML tags, then surrounding whitespace
    return _TAG_RE.sub('', v).strip()


def is_blank(v) -> bool:
    return v is None or (isinstance(v, str) and not v.strip())
