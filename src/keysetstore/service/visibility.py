"""
Field visibility filtering.

Runs after the pagination engine: it only trims record fields and never
touches page links.
"""

from __future__ import annotations

from typing import Any, Optional

from ..viewsets.base import VisibilityConfig
from .context import Principal


class VisibilityFilter:
    """
    Hides restricted fields from principals that may not see them.

    Usage:
        visible = VisibilityFilter(config).apply(principal, record)
    """

    def __init__(self, config: Optional[VisibilityConfig]):
        self.config = config

    def apply(self, principal: Optional[Principal], record: dict[str, Any]) -> dict[str, Any]:
        if self.config is None or not self.config.restricted:
            return record
        if self._is_owner(principal, record):
            return record

        roles = set(principal.roles) if principal else set()
        return {
            key: value
            for key, value in record.items()
            if key not in self.config.restricted or roles.intersection(self.config.restricted[key])
        }

    def apply_many(self, principal: Optional[Principal], records: list[dict[str, Any]]) -> list[dict[str, Any]]:
        return [self.apply(principal, record) for record in records]

    def _is_owner(self, principal: Optional[Principal], record: dict[str, Any]) -> bool:
        owner_field = self.config.owner_field
        if principal is None or principal.id is None or owner_field is None:
            return False
        return record.get(owner_field) == principal.id
