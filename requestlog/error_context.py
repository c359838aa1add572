"""Error categorization, request snapshots, and fingerprints for grouping errors.

Categories are derived from the error itself, never tagged at the call site:
an explicit error code is checked first, then the message, each against an
ordered rule table. The first matching rule wins, so the order of
``CODE_RULES`` and ``MESSAGE_RULES`` is part of the contract.

Fingerprints hash the category, the message with instance-specific values
(UUIDs, path segments, numbers) replaced by placeholders, and the first
three stack lines. Two occurrences of the same failure collide even when
their raw messages differ in IDs or paths.
"""

import hashlib
import re
import traceback
from dataclasses import dataclass, field
from typing import Any

from requestlog.models import Category
from requestlog.sanitize import sanitize_headers

CODE_RULES = (
    (("VALIDATION", "INVALID"), Category.VALIDATION),
    (("AUTH", "UNAUTHORIZED", "FORBIDDEN"), Category.AUTHENTICATION),
    (("NETWORK", "TIMEOUT", "FETCH"), Category.NETWORK),
)

MESSAGE_RULES = (
    (("validation", "invalid", "required"), Category.VALIDATION),
    (("api", "endpoint", "request failed"), Category.API),
    (("generation", "storyboard", "gemini"), Category.GENERATION),
    (("storage", "localstorage", "database"), Category.STORAGE),
    (("auth", "unauthorized", "permission"), Category.AUTHENTICATION),
    (("network", "timeout", "fetch", "connection"), Category.NETWORK),
)

FINGERPRINT_LENGTH = 16
STACK_LINES = 3

UUID_PATTERN = re.compile(
    r"[a-f0-9]{8}-[a-f0-9]{4}-[a-f0-9]{4}-[a-f0-9]{4}-[a-f0-9]{12}", re.IGNORECASE
)
PATH_PATTERN = re.compile(r"/[^/\s]+")
NUMBER_PATTERN = re.compile(r"\d+")


@dataclass(frozen=True)
class RequestSnapshot:
    method: str
    url: str
    ip: str
    user_agent: str | None = None
    headers: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "method": self.method,
            "url": self.url,
            "ip": self.ip,
            "userAgent": self.user_agent,
            "headers": dict(self.headers),
        }


@dataclass
class ErrorContext:
    category: Category
    message: str
    stack: str | None = None
    code: str | None = None
    request: RequestSnapshot | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        data = {
            "category": self.category.value,
            "code": self.code,
            "message": self.message,
            "stack": self.stack,
        }
        data.update(self.extra)
        if self.request is not None:
            data["request"] = self.request.to_dict()
        return data


def _error_message(error) -> str:
    if isinstance(error, BaseException) and getattr(error, "message", None):
        return str(error.message)
    return str(error)


def _error_stack(error) -> str | None:
    if isinstance(error, BaseException) and error.__traceback__ is not None:
        return "".join(traceback.format_exception(type(error), error, error.__traceback__))
    return None


def _matches(text: str, keywords) -> bool:
    return any(keyword in text for keyword in keywords)


def categorize(error, code: str | None = None) -> Category:
    """Derive a category from the error code first, then from the message."""
    error_code = (code or "").upper()
    for keywords, category in CODE_RULES:
        if _matches(error_code, keywords):
            return category

    message = _error_message(error).lower()
    for keywords, category in MESSAGE_RULES:
        if _matches(message, keywords):
            return category

    return Category.UNKNOWN


def client_address(request) -> str:
    """Forwarded-for address if present, else the socket peer."""
    forwarded = request.headers.get("X-Forwarded-For", "")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.remote_addr or "unknown"


def snapshot_request(request) -> RequestSnapshot:
    """Capture the parts of a Flask/Werkzeug request worth keeping in an error log."""
    return RequestSnapshot(
        method=request.method,
        url=request.full_path.rstrip("?"),
        ip=client_address(request),
        user_agent=request.headers.get("User-Agent"),
        headers=sanitize_headers(request.headers),
    )


def build_context(error, request=None, extra: dict | None = None) -> ErrorContext:
    extra = dict(extra or {})
    code = extra.pop("code", None) or getattr(error, "code", None)
    if not isinstance(code, str):
        code = None

    return ErrorContext(
        category=categorize(error, code),
        message=_error_message(error),
        stack=_error_stack(error),
        code=code,
        request=snapshot_request(request) if request is not None else None,
        extra=extra,
    )


def extract_error_info(error) -> dict:
    """Normalize any raised value into message/name/stack/code."""
    if isinstance(error, BaseException):
        code = getattr(error, "code", None)
        return {
            "message": _error_message(error),
            "name": type(error).__name__,
            "stack": _error_stack(error),
            "code": code if isinstance(code, str) else None,
        }
    return {"message": str(error), "name": "UnknownError", "stack": None, "code": None}


def format_stack_trace(stack: str | None) -> list[str]:
    """Split a traceback into trimmed lines, dropping blanks and the header."""
    if not stack:
        return []
    lines = []
    for line in stack.splitlines():
        line = line.strip()
        if line and not line.startswith("Traceback (most recent call last)"):
            lines.append(line)
    return lines


def leading_frames(error, limit: int = STACK_LINES) -> str:
    """The innermost ``limit`` frames of an exception, most recent call first."""
    if not isinstance(error, BaseException) or error.__traceback__ is None:
        return ""
    frames = traceback.extract_tb(error.__traceback__)[-limit:]
    return "\n".join(
        f"{frame.filename}:{frame.lineno} in {frame.name}" for frame in reversed(frames)
    )


def normalize_message(message: str) -> str:
    normalized = message.lower()
    normalized = UUID_PATTERN.sub("[UUID]", normalized)
    normalized = PATH_PATTERN.sub("/[PATH]", normalized)
    normalized = NUMBER_PATTERN.sub("[NUMBER]", normalized)
    return normalized.strip()


def fingerprint_parts(category: Category | str, message: str, stack: str | None) -> str:
    """Hash category, normalized message and the first stack lines to a short hex id."""
    category_name = category.value if isinstance(category, Category) else str(category)
    stack_lines = "\n".join((stack or "").splitlines()[:STACK_LINES])
    stack_lines = NUMBER_PATTERN.sub("[NUMBER]", stack_lines).lower()
    data = f"{category_name}:{normalize_message(message)}:{stack_lines}"
    return hashlib.sha256(data.encode("utf-8")).hexdigest()[:FINGERPRINT_LENGTH]


def fingerprint(error, context: ErrorContext | None = None) -> str:
    category = context.category if context is not None else categorize(error)
    return fingerprint_parts(category, _error_message(error), leading_frames(error))
