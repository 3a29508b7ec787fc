"""
ViewSets - per-collection configuration.

Models stay plain ORM classes. What can be sorted and searched, which
indexes back the sorts, who may see which fields and which validators run
is declared on a viewset.

Usage:
    class ArticleViewSet(ModelViewSet):
        model = Article
        searchable_fields = ("author_id",)
        sortable_fields = {"published_at", "title"}
        access = AccessConfig.direct("org_id")
        visibility = VisibilityConfig(restricted={"draft_notes": ["editor"]}, owner_field="author_id")
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Optional, Sequence

from sqlalchemy import inspect
from sqlalchemy.orm import DeclarativeBase

from ..core.query_types import NormalizedFilter
from ..store.casting import get_column_type
from ..store.indexes import CompoundIndex, ensure_indexes

if TYPE_CHECKING:
    from ..service.context import OperationContext, Principal


@dataclass(frozen=True)
class AccessConfig:
    """
    Tenant isolation for a collection.

    With a tenant field set, a principal only reaches rows whose tenant field
    is one of principal.tenant_ids. Trusted callers (no principal) are not
    restricted.
    """
    tenant_field: Optional[str] = None

    @classmethod
    def direct(cls, tenant_field: str) -> AccessConfig:
        return cls(tenant_field=tenant_field)

    @property
    def enabled(self) -> bool:
        return self.tenant_field is not None

    def guard(self, principal: Optional[Principal]) -> list[NormalizedFilter]:
        """Filters to add to every query made on behalf of principal."""
        if not self.enabled or principal is None:
            return []
        return [NormalizedFilter(field=self.tenant_field, op="in", value=list(principal.tenant_ids))]


@dataclass(frozen=True)
class VisibilityConfig:
    """
    Field visibility rules.

    restricted maps a field to the roles allowed to see it. The record owner
    (principal.id == record[owner_field]) sees every field.
    """
    restricted: dict[str, list[str]] = field(default_factory=dict)
    owner_field: Optional[str] = None


Validator = Callable[["OperationContext"], Awaitable[None]]


@dataclass
class FieldInfo:
    """Schema entry for one column."""
    type: str
    sortable: bool
    searchable: bool
    nullable: bool
    enum_values: Optional[list[Any]] = None


# Column types a cursor can be built from and compared on
SORTABLE_TYPES = frozenset({"int", "string", "float", "decimal", "datetime", "date", "bool", "uuid", "enum"})


def describe_fields(
    model: type[DeclarativeBase],
    sortable: Optional[set[str]] = None,
    searchable: Sequence[str] = (),
) -> dict[str, FieldInfo]:
    """
    Describe every mapped column.

    When sortable is None, every column of a SORTABLE_TYPES type is sortable.
    """
    described = {}
    for key, column in inspect(model).columns.items():
        column_type, enum_values = get_column_type(column)
        described[key] = FieldInfo(
            type=column_type,
            sortable=key in sortable if sortable is not None else column_type in SORTABLE_TYPES,
            searchable=key in searchable,
            nullable=bool(column.nullable) and not column.primary_key,
            enum_values=enum_values,
        )
    return described


def primary_key_fields(model: type[DeclarativeBase]) -> list[str]:
    mapper = inspect(model)
    return [mapper.get_property_by_column(column).key for column in mapper.primary_key]


class ModelViewSet:
    """
    Configuration for one stored collection.

    Example:
        class ArticleViewSet(ModelViewSet):
            model = Article
            sortable_fields = {"published_at", "title"}
            compound_indexes = [[("org_id", 1), ("published_at", -1)]]
            validators = {"create": [check_title]}
    """

    model: type[DeclarativeBase]

    # URL prefix; the lowercased model name when not set
    service: Optional[str] = None

    # Unique tie-break appended to every sort; the primary key when not set
    identity_field: Optional[str] = None

    searchable_fields: Sequence[str] = ()
    sortable_fields: Optional[set[str]] = None
    compound_indexes: Sequence[Sequence[tuple[str, int]]] = ()

    pagination_default_limit: int = 20
    pagination_max_limit: int = 200

    access: AccessConfig = AccessConfig()
    visibility: Optional[VisibilityConfig] = None

    publish_changes: bool = True

    # operation -> validators run after the built-in checks
    validators: dict[str, Sequence[Validator]] = {}

    @classmethod
    def get_entity_name(cls) -> str:
        return cls.model.__name__

    @classmethod
    def get_service(cls) -> str:
        return cls.service if cls.service is not None else cls.model.__name__.lower()

    @classmethod
    def get_identity_field(cls) -> str:
        if cls.identity_field is not None:
            return cls.identity_field
        return primary_key_fields(cls.model)[0]

    @classmethod
    def get_fields(cls) -> dict[str, FieldInfo]:
        return describe_fields(cls.model, cls.sortable_fields, cls.searchable_fields)

    @classmethod
    def get_sortable_fields(cls) -> set[str]:
        """Sortable field names; the identity field is always included."""
        sortable = {name for name, info in cls.get_fields().items() if info.sortable}
        sortable.add(cls.get_identity_field())
        return sortable

    @classmethod
    def get_indexes(cls) -> list[CompoundIndex]:
        """Declare this viewset's indexes on first use and return them."""
        indexes = cls.__dict__.get("_indexes")
        if indexes is None:
            indexes = ensure_indexes(
                cls.model,
                searchable=cls.searchable_fields,
                sortable=sorted(cls.get_sortable_fields()),
                compounds=cls.compound_indexes,
                identity_field=cls.get_identity_field(),
            )
            cls._indexes = indexes
        return indexes

    @classmethod
    def get_validators(cls, operation: str) -> list[Validator]:
        return list(cls.validators.get(operation, ()))

    @classmethod
    def describe(cls) -> dict[str, Any]:
        """Collection schema served at GET /internal/schema."""
        return {
            "service": cls.get_service(),
            "entity": cls.get_entity_name(),
            "identity": cls.get_identity_field(),
            "fields": {name: asdict(info) for name, info in cls.get_fields().items()},
            "indexes": [
                {"name": index.name, "sort": index.sort.to_pairs()}
                for index in cls.get_indexes()
            ],
            "tenant_field": cls.access.tenant_field,
            "pagination": {
                "default_count": cls.pagination_default_limit,
                "max_count": cls.pagination_max_limit,
            },
        }
