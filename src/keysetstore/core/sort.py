"""
Sort specifications.

A sort is an ordered list of (field, order) pairs. Order matters: the first
entry is the primary field and later entries break ties, so sorts are never
held in a mapping.

Input forms accepted by SortSpec:
    ["-created_at", "name"]
    [("created_at", -1), ("name", 1)]
    [{"field": "created_at", "order": -1}]
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Iterator, Literal

from pydantic import BaseModel, ConfigDict, Field, RootModel, field_validator, model_validator


Order = Literal[1, -1]


class SortField(BaseModel):
    """
    A single sort entry.

    Input: "-created_at"
    Normalized: SortField(field="created_at", order=-1)
    """
    model_config = ConfigDict(frozen=True)

    field: str = Field(min_length=1)
    order: Order = 1

    @model_validator(mode="before")
    @classmethod
    def _coerce(cls, value: Any) -> Any:
        if isinstance(value, str):
            if value.startswith("-"):
                return {"field": value[1:], "order": -1}
            return {"field": value.lstrip("+"), "order": 1}
        if isinstance(value, (list, tuple)):
            if len(value) != 2:
                raise ValueError(f"Sort pair must be (field, order), got {value!r}")
            return {"field": value[0], "order": value[1]}
        return value

    def inverted(self) -> SortField:
        return SortField(field=self.field, order=-self.order)


class SortSpec(RootModel[list[SortField]]):
    """
    Ordered, non-empty list of sort fields.

    Values are immutable: inverted() and with_tiebreak() build new specs, so
    a caller's sort and any hint derived from it never share state.
    """
    model_config = ConfigDict(frozen=True)

    @model_validator(mode="before")
    @classmethod
    def _reject_mapping(cls, value: Any) -> Any:
        if isinstance(value, Mapping):
            raise ValueError("Sort must be an ordered list of (field, order) pairs, not a mapping")
        return value

    @field_validator("root")
    @classmethod
    def _check_fields(cls, fields: list[SortField]) -> list[SortField]:
        if not fields:
            raise ValueError("Sort must name at least one field")
        names = [f.field for f in fields]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValueError(f"Duplicate sort fields: {duplicates}")
        return fields

    def __iter__(self) -> Iterator[SortField]:  # type: ignore[override]
        return iter(self.root)

    def __len__(self) -> int:
        return len(self.root)

    def __getitem__(self, index: int) -> SortField:
        return self.root[index]

    @property
    def first(self) -> SortField:
        """The primary sort field."""
        return self.root[0]

    @property
    def primary_order(self) -> int:
        return self.root[0].order

    @property
    def field_names(self) -> list[str]:
        return [f.field for f in self.root]

    def inverted(self) -> SortSpec:
        """New spec with every field's order negated."""
        return SortSpec([f.inverted() for f in self.root])

    def with_tiebreak(self, identity_field: str) -> SortSpec:
        """
        Spec guaranteed to end in the identity field.

        The tie-break follows the primary order so that inverting the primary
        order yields the exact reverse sequence.
        """
        if identity_field in self.field_names:
            return self
        return SortSpec([*self.root, SortField(field=identity_field, order=self.primary_order)])

    def to_pairs(self) -> list[tuple[str, int]]:
        return [(f.field, f.order) for f in self.root]
