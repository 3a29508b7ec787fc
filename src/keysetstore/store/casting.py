"""
Schema-driven field casting.

Converts JSON-ish input (mutation data, cursors that went through a JSON
round trip) to the Python types of the model's columns.
"""

from __future__ import annotations

import enum
import uuid
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from sqlalchemy import inspect
from sqlalchemy import types as sqltypes
from sqlalchemy.orm import DeclarativeBase

from ..core.errors import ValidationError


# Checked in order: Enum subclasses String, Float subclasses Numeric.
_SIMPLE_TYPES: tuple[tuple[type, str], ...] = (
    (sqltypes.Enum, "enum"),
    (sqltypes.Boolean, "bool"),
    (sqltypes.Integer, "int"),
    (sqltypes.Float, "float"),
    (sqltypes.Numeric, "decimal"),
    (sqltypes.DateTime, "datetime"),
    (sqltypes.Date, "date"),
    (sqltypes.Uuid, "uuid"),
    (sqltypes.JSON, "json"),
    (sqltypes.String, "string"),
)


def get_column_type(column) -> tuple[str, list[str] | None]:
    """
    Simple type name of a column, plus the allowed values for enums.

    Dialect types (JSONB, TIMESTAMP, ...) resolve through their generic base.
    Anything unrecognised is treated as a string.
    """
    column_type = column.type
    simple = next((name for base, name in _SIMPLE_TYPES if isinstance(column_type, base)), "string")
    if simple != "enum":
        return simple, None

    enum_class = getattr(column_type, "enum_class", None)
    if enum_class is not None:
        return simple, [member.value for member in enum_class]
    return simple, list(column_type.enums)


class FieldCaster:
    """
    Casts values to a model's column types.

    Usage:
        caster = FieldCaster(Article)
        data = caster.cast({"published_at": "2024-01-05T10:00:00Z", "rank": "3"})
    """

    def __init__(self, model: type[DeclarativeBase]):
        self.model = model
        self._columns = dict(inspect(model).columns.items())

    def has_field(self, name: str) -> bool:
        return name in self._columns

    @property
    def field_names(self) -> list[str]:
        return list(self._columns)

    def cast(self, data: dict[str, Any]) -> dict[str, Any]:
        """
        Return a new dict with every value cast to its column type.

        Raises:
            ValidationError: unknown field or value that cannot be converted
        """
        errors = []
        cast = {}
        for key, value in data.items():
            column = self._columns.get(key)
            if column is None:
                errors.append(f"Unknown field: {key}")
                continue
            try:
                cast[key] = self.cast_value(column, value)
            except (TypeError, ValueError, InvalidOperation) as e:
                errors.append(f"Invalid value for {key}: {e}")
        if errors:
            raise ValidationError(errors)
        return cast

    def cast_value(self, column, value: Any) -> Any:
        if value is None:
            return None

        col_type, enum_values = get_column_type(column)

        if col_type == "string":
            if isinstance(value, (int, float, Decimal)) and not isinstance(value, bool):
                return str(value)
            if not isinstance(value, str):
                raise TypeError(f"expected string, got {type(value).__name__}")
            return value

        if col_type == "int":
            if isinstance(value, bool):
                raise TypeError("expected integer, got bool")
            if isinstance(value, float) and not value.is_integer():
                raise ValueError(f"{value!r} is not an integer")
            return int(value)

        if col_type == "float":
            if isinstance(value, bool):
                raise TypeError("expected number, got bool")
            return float(value)

        if col_type == "decimal":
            return Decimal(str(value))

        if col_type == "bool":
            return self._cast_bool(value)

        if col_type == "datetime":
            if isinstance(value, datetime):
                return value
            if isinstance(value, str):
                return datetime.fromisoformat(value.replace("Z", "+00:00"))
            raise TypeError(f"expected datetime, got {type(value).__name__}")

        if col_type == "date":
            if isinstance(value, datetime):
                return value.date()
            if isinstance(value, date):
                return value
            if isinstance(value, str):
                return datetime.strptime(value[:10], "%Y-%m-%d").date()
            raise TypeError(f"expected date, got {type(value).__name__}")

        if col_type == "uuid":
            return value if isinstance(value, uuid.UUID) else uuid.UUID(str(value))

        if col_type == "enum":
            return self._cast_enum(column, value, enum_values)

        return value

    def _cast_bool(self, value: Any) -> bool:
        if isinstance(value, bool):
            return value
        if isinstance(value, int) and value in (0, 1):
            return bool(value)
        if isinstance(value, str) and value.lower() in ("true", "false", "1", "0"):
            return value.lower() in ("true", "1")
        raise ValueError(f"{value!r} is not a boolean")

    def _cast_enum(self, column, value: Any, enum_values: Optional[list[str]]) -> Any:
        enum_class = getattr(column.type, "enum_class", None)
        if enum_class is not None:
            if isinstance(value, enum_class):
                return value
            try:
                return enum_class(value)
            except ValueError:
                # Enum columns may also be addressed by member name
                if isinstance(value, str) and value in enum_class.__members__:
                    return enum_class[value]
                raise
        if isinstance(value, enum.Enum):
            value = value.value
        if enum_values is not None and value not in enum_values:
            raise ValueError(f"{value!r} is not one of {enum_values}")
        return value
