"""
layout_config.py — Pagination capacities for the quotation page allocator

Two independent sets of limits drive pagination:

  CHUNKING CAPS   items_per_first_page / items_per_page
                  How many rows a page may hold when it carries no footer.
  FIT THRESHOLDS  base_first_page_capacity / base_standard_page_capacity
                  How many rows may share a page with the totals/notes/signature
                  footer. Reduced by long notes, raised by the signature
                  spacing slider.

A fit threshold is never allowed to exceed its chunking cap.

Sources, lowest to highest priority:
  DEFAULT_PAGINATION → config file "pagination" section → env vars → overrides
"""

import os
import logging

from .paths import load_config_file

log = logging.getLogger("pagination")


class LayoutConfigError(ValueError):
    """Pagination configuration is inconsistent."""


DEFAULT_PAGINATION = {
    "items_per_first_page": 12,
    "items_per_page": 15,
    "base_first_page_capacity": 10,
    "base_standard_page_capacity": 13,
    "notes_chars_per_line": 80,     # rough line estimate for the notes box
    "notes_lines_per_item": 3,      # notes lines that displace one table row
    "spacing_steps_per_item": 2,    # slider steps that free one table row
}

_ENV_KEYS = {
    "QB_ITEMS_PER_FIRST_PAGE": "items_per_first_page",
    "QB_ITEMS_PER_PAGE": "items_per_page",
    "QB_FIRST_PAGE_CAPACITY": "base_first_page_capacity",
    "QB_STANDARD_PAGE_CAPACITY": "base_standard_page_capacity",
}


class PaginationConfig:
    """Named capacities for the page allocator."""

    FIELDS = tuple(DEFAULT_PAGINATION)

    def __init__(self, **values):
        unknown = set(values) - set(self.FIELDS)
        if unknown:
            raise LayoutConfigError(f"Unknown pagination setting(s): {', '.join(sorted(unknown))}")
        merged = dict(DEFAULT_PAGINATION)
        merged.update(values)
        for name in self.FIELDS:
            try:
                setattr(self, name, int(merged[name]))
            except (TypeError, ValueError):
                raise LayoutConfigError(f"{name} must be an integer, got {merged[name]!r}")

    def validate(self) -> "PaginationConfig":
        """Raise LayoutConfigError unless the capacities are mutually consistent."""
        for name in self.FIELDS:
            if getattr(self, name) < 0:
                raise LayoutConfigError(f"{name} must be >= 0")
        for name in ("items_per_first_page", "items_per_page",
                     "notes_chars_per_line", "notes_lines_per_item",
                     "spacing_steps_per_item"):
            if getattr(self, name) < 1:
                raise LayoutConfigError(f"{name} must be >= 1")
        if self.base_first_page_capacity > self.items_per_first_page:
            raise LayoutConfigError(
                f"base_first_page_capacity ({self.base_first_page_capacity}) exceeds "
                f"items_per_first_page ({self.items_per_first_page})")
        if self.base_standard_page_capacity > self.items_per_page:
            raise LayoutConfigError(
                f"base_standard_page_capacity ({self.base_standard_page_capacity}) exceeds "
                f"items_per_page ({self.items_per_page})")
        return self

    def replace(self, **changes) -> "PaginationConfig":
        values = self.to_dict()
        values.update(changes)
        return PaginationConfig(**values).validate()

    def to_dict(self) -> dict:
        return {name: getattr(self, name) for name in self.FIELDS}

    def __eq__(self, other):
        return isinstance(other, PaginationConfig) and self.to_dict() == other.to_dict()

    def __repr__(self):
        inner = ", ".join(f"{k}={v}" for k, v in self.to_dict().items())
        return f"PaginationConfig({inner})"


def load_pagination_config(path: str = None, overrides: dict = None) -> PaginationConfig:
    """Build a validated PaginationConfig from defaults, file, env and overrides."""
    values = dict(DEFAULT_PAGINATION)

    file_section = load_config_file(path).get("pagination", {})
    if isinstance(file_section, dict):
        values.update({k: v for k, v in file_section.items() if k in DEFAULT_PAGINATION})

    for env_key, field in _ENV_KEYS.items():
        raw = os.environ.get(env_key, "")
        if raw:
            values[field] = raw

    if overrides:
        values.update(overrides)

    config = PaginationConfig(**values).validate()
    log.debug("Pagination config: %s", config)
    return config
