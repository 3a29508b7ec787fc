"""
Index provisioning for searchable and sortable fields.

Every sortable field gets a compound index ending in the identity field, in
both primary orientations, so that any sort hint the paginator produces can be
served by an index scan in one direction or the other.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from sqlalchemy import Index
from sqlalchemy.orm import DeclarativeBase

from ..core.sort import SortField, SortSpec

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompoundIndex:
    """A provisioned compound index and the sort it stores rows in."""
    name: str
    sort: SortSpec


def _index_name(table_name: str, sort: SortSpec) -> str:
    parts = [f.field if f.order == 1 else f"{f.field}_desc" for f in sort]
    return f"ix_{table_name}_{'_'.join(parts)}"


def _create_index(model: type[DeclarativeBase], name: str, sort: SortSpec) -> None:
    table = model.__table__
    if any(index.name == name for index in table.indexes):
        return
    expressions = []
    for f in sort:
        column = table.c[f.field]
        expressions.append(column if f.order == 1 else column.desc())
    Index(name, *expressions)
    logger.debug(f"Declared index {name} on {table.name}")


def ensure_indexes(
    model: type[DeclarativeBase],
    searchable: Iterable[str] = (),
    sortable: Iterable[str] = (),
    compounds: Sequence[Sequence[tuple[str, int]]] = (),
    identity_field: str = "id",
) -> list[CompoundIndex]:
    """
    Declare indexes on the model's table.

    Indexes are attached to the table metadata and created together with it
    (Base.metadata.create_all). Calling this again is a no-op for indexes
    that already exist on the table.

    Args:
        model: SQLAlchemy model class
        searchable: Fields that get a single-column index
        sortable: Fields that get (field, identity) compound indexes
        compounds: Extra compound sorts, extended with the identity field
        identity_field: Unique tie-break field

    Returns:
        All compound indexes, base and extended orientations
    """
    table_name = model.__table__.name
    sortable = list(sortable)

    for field in searchable:
        if field in sortable:
            continue
        _create_index(model, f"ix_{table_name}_{field}", SortSpec([SortField(field=field)]))

    bases: list[SortSpec] = [
        SortSpec([SortField(field=field), SortField(field=identity_field)])
        for field in sortable
        if field != identity_field
    ]
    for pairs in compounds:
        spec = SortSpec(list(pairs))
        if identity_field not in spec.field_names:
            spec = SortSpec([*spec, SortField(field=identity_field)])
        bases.append(spec)

    result: list[CompoundIndex] = []
    for base in bases:
        extended = SortSpec([base.first.inverted(), *list(base)[1:]])
        for spec in (base, extended):
            name = _index_name(table_name, spec)
            _create_index(model, name, spec)
            result.append(CompoundIndex(name=name, sort=spec))
    return result


def match_index(indexes: Iterable[CompoundIndex], hint: SortSpec) -> Optional[CompoundIndex]:
    """Find an index that can serve the hint (scanned forward or backward)."""
    inverted = hint.inverted()
    for index in indexes:
        if index.sort == hint or index.sort == inverted:
            return index
    return None
