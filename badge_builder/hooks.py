"""
Named content filters.

A filter is a callable `fn(value, *args) -> value`. Filters registered under the same
name run in ascending priority order (registration order breaks ties), each receiving
the previous filter's output.
"""
from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

RENDER_BADGE_BUILDER_LINK = "credly_render_badge_builder"
ADMIN_POST_THUMBNAIL_HTML = "admin_post_thumbnail_html"

DEFAULT_PRIORITY = 10

FilterFn = Callable[..., Any]


@dataclass
class FilterRegistry:
    _filters: dict[str, list[tuple[int, int, FilterFn]]] = field(default_factory=dict)
    _counter: int = 0

    def add_filter(self, name: str, fn: FilterFn, *, priority: int = DEFAULT_PRIORITY) -> None:
        self._counter += 1
        self._filters.setdefault(name, []).append((priority, self._counter, fn))
        self._filters[name].sort(key=lambda entry: (entry[0], entry[1]))

    def remove_filter(self, name: str, fn: FilterFn) -> bool:
        entries = self._filters.get(name) or []
        kept = [entry for entry in entries if entry[2] is not fn]
        if len(kept) == len(entries):
            return False
        self._filters[name] = kept
        return True

    def has_filters(self, name: str) -> bool:
        return bool(self._filters.get(name))

    def apply_filters(self, name: str, value: Any, *args: Any) -> Any:
        for _priority, _order, fn in list(self._filters.get(name) or []):
            value = fn(value, *args)
        return value
