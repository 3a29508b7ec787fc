"""
Operation validators.

Built-in checks run first, then the viewset's own validators for the
operation. Validation runs at most once per context.
"""

from __future__ import annotations

import logging
from typing import Callable

from ..core.errors import ValidationError
from ..store.casting import FieldCaster
from .context import OperationContext

logger = logging.getLogger(__name__)


def _check_create(ctx: OperationContext) -> list[str]:
    if not ctx.data:
        return ["No data to create"]
    return []


def _check_update(ctx: OperationContext) -> list[str]:
    errors = []
    if not ctx.query:
        errors.append("Filters required for update")
    if not ctx.data:
        errors.append("No fields to update")
    identity = ctx.viewset.get_identity_field()
    if identity in ctx.data:
        errors.append(f"Field '{identity}' cannot be updated")
    return errors


def _check_remove(ctx: OperationContext) -> list[str]:
    if not ctx.query:
        return ["Filters required for remove"]
    return []


def _check_find(ctx: OperationContext) -> list[str]:
    search = ctx.search
    if search is None:
        return ["Search request required"]

    errors = []
    sortable = ctx.viewset.get_sortable_fields()
    for name in search.sort.field_names:
        if name not in sortable:
            errors.append(f"Field '{name}' is not sortable")

    if search.count > ctx.viewset.pagination_max_limit:
        errors.append(f"count must not exceed {ctx.viewset.pagination_max_limit}")

    if search.fields is not None:
        caster = FieldCaster(ctx.viewset.model)
        for name in search.fields:
            if not caster.has_field(name):
                errors.append(f"Unknown field: {name}")

    return errors


BUILTIN_CHECKS: dict[str, Callable[[OperationContext], list[str]]] = {
    "create": _check_create,
    "update": _check_update,
    "remove": _check_remove,
    "find": _check_find,
}


async def validate(ctx: OperationContext) -> None:
    """
    Validate the context for its operation.

    Raises:
        ValidationError: collected errors of the built-in checks, or whatever
            a viewset validator raises
    """
    if ctx.validated:
        return

    check = BUILTIN_CHECKS.get(ctx.operation)
    errors = check(ctx) if check else []
    if errors:
        logger.debug(f"{ctx.model_name}.{ctx.operation} rejected: {errors}")
        raise ValidationError(errors)

    for validator in ctx.viewset.get_validators(ctx.operation):
        await validator(ctx)

    ctx.validated = True
