"""Record predicates for level, category, free-text search and time range."""

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Iterable

from requestlog.query.reader import parse_timestamp

OLDEST = datetime.min.replace(tzinfo=timezone.utc)


@dataclass
class FilterOptions:
    levels: list[str] = field(default_factory=list)
    categories: list[str] = field(default_factory=list)
    search: str | None = None
    since: datetime | None = None
    until: datetime | None = None
    limit: int | None = None


def filter_by_levels(entry: dict, levels: list[str]) -> bool:
    level = str(entry.get("level", "")).lower()
    return any(level == wanted.lower() for wanted in levels)


def filter_by_categories(entry: dict, categories: list[str]) -> bool:
    category = entry.get("category")
    if not category:
        return False
    return any(str(category).lower() == wanted.lower() for wanted in categories)


def filter_by_search(entry: dict, keyword: str) -> bool:
    """True if keyword appears in the message or anywhere in the record (case-insensitive)."""
    keyword = keyword.lower()
    if keyword in str(entry.get("message", "")).lower():
        return True
    return keyword in json.dumps(entry, default=str).lower()


def filter_by_time_range(entry: dict, since: datetime | None, until: datetime | None) -> bool:
    """Inclusive bounds. Records without a readable timestamp never match."""
    ts = parse_timestamp(entry.get("timestamp"))
    if ts is None:
        return False
    if since is not None and ts < since:
        return False
    if until is not None and ts > until:
        return False
    return True


def build_filter_chain(options: FilterOptions) -> Callable[[dict], bool]:
    """Combine all active filters into a single callable that ANDs them."""
    predicates = []

    if options.levels:
        predicates.append(lambda entry: filter_by_levels(entry, options.levels))
    if options.categories:
        predicates.append(lambda entry: filter_by_categories(entry, options.categories))
    if options.search:
        predicates.append(lambda entry: filter_by_search(entry, options.search))
    if options.since is not None or options.until is not None:
        predicates.append(lambda entry: filter_by_time_range(entry, options.since, options.until))

    if not predicates:
        return lambda entry: True

    def combined(entry: dict) -> bool:
        return all(p(entry) for p in predicates)

    return combined


def sort_key(entry: dict) -> datetime:
    return parse_timestamp(entry.get("timestamp")) or OLDEST


def filter_entries(entries: Iterable[dict], options: FilterOptions) -> list[dict]:
    """Apply filters, then sort newest first and cap to ``options.limit``."""
    keep = build_filter_chain(options)
    filtered = sorted((e for e in entries if keep(e)), key=sort_key, reverse=True)
    if options.limit:
        filtered = filtered[: options.limit]
    return filtered
