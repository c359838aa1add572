"""Redaction of sensitive fields and headers before anything is logged."""

REDACTED = "[REDACTED]"

# Matched as substrings of the lower-cased key.
SENSITIVE_FIELDS = ("password", "token", "apikey", "secret", "authorization")

SENSITIVE_HEADERS = frozenset({"authorization", "cookie", "x-api-key", "api-key"})


def is_sensitive_key(key) -> bool:
    lowered = str(key).lower()
    return any(field in lowered for field in SENSITIVE_FIELDS)


def sanitize(value):
    """Return a copy of ``value`` with sensitive keys redacted at every depth.

    Mappings and lists are rebuilt rather than mutated, so the caller's
    object is left untouched. Sibling keys are preserved as-is. Applying
    it twice gives the same result as applying it once.
    """
    if isinstance(value, dict):
        return {
            key: REDACTED if is_sensitive_key(key) else sanitize(item)
            for key, item in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [sanitize(item) for item in value]
    return value


def sanitize_headers(headers) -> dict[str, str]:
    """Copy a header mapping, replacing denylisted headers with the redaction marker."""
    result = {}
    for key, value in headers.items():
        if key.lower() in SENSITIVE_HEADERS:
            result[key] = REDACTED
        else:
            result[key] = str(value or "")
    return result
