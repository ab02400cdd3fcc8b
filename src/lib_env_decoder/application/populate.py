"""Structure populator walking decode plans against a key/value source.

Purpose
-------
Mutate a target dataclass instance in place, depth-first and in field
declaration order, reading one key per leaf and recursing into nested
structures. Absent keys are never errors: the field keeps its current value.

Contents
--------
* :func:`ensure_addressable` – reject targets that cannot be mutated.
* :func:`populate` – walk a :class:`~lib_env_decoder.application.plan.StructPlan`.
* :func:`namespace_present` – probe whether any key under a nested plan exists.

System Role
-----------
Called by :meth:`lib_env_decoder.core.Decoder.decode`. Conversion is delegated
to :mod:`lib_env_decoder.application.convert`; failures propagate as
:class:`~lib_env_decoder.domain.errors.ConversionFailed` or
:class:`~lib_env_decoder.domain.errors.UnsupportedType` without rolling back
fields that were already written.
"""

from __future__ import annotations

import dataclasses
from typing import Any

from ..domain.errors import ConversionFailed, NotAddressable
from ..observability import log_debug, log_trace, make_event
from .convert import convert, strip_annotated, unwrap_optional
from .plan import FieldPlan, ShapeKind, StructPlan, instantiate
from .ports import KeyValueSource


def ensure_addressable(target: Any) -> type:
    """Return the dataclass type of *target* or raise :class:`NotAddressable`.

    Examples
    --------
    >>> ensure_addressable(None)
    Traceback (most recent call last):
    ...
    lib_env_decoder.domain.errors.NotAddressable: decode target must be a mutable dataclass instance, got NoneType
    """

    if isinstance(target, type) or not dataclasses.is_dataclass(target):
        kind = target.__name__ if isinstance(target, type) else type(target).__name__
        raise NotAddressable(f"decode target must be a mutable dataclass instance, got {kind}")
    if _is_frozen(type(target)):
        raise NotAddressable(f"decode target {type(target).__name__} is frozen")
    return type(target)


def populate(source: KeyValueSource, plan: StructPlan, target: Any) -> int:
    """Populate *target* from *source* following *plan*; return the number of fields set."""

    populated = 0
    for item in plan.fields:
        populated += _populate_field(source, item, target)
    return populated


def namespace_present(source: KeyValueSource, plan: StructPlan) -> bool:
    """Return ``True`` when at least one key under *plan* exists in *source*."""

    return any(source.lookup(key)[1] for key, _ in plan.leaf_keys())


def _populate_field(source: KeyValueSource, item: FieldPlan, target: Any) -> int:
    if item.kind is ShapeKind.SKIP:
        log_trace("field_skipped", **make_event(item.key, item.path, {"kind": item.kind.value}))
        return 0
    if item.kind in (ShapeKind.STRUCT, ShapeKind.OPTIONAL_STRUCT):
        return _populate_struct(source, item, target)

    raw, found = source.lookup(item.key)
    if not found:
        log_trace("field_missing", **make_event(item.key, item.path))
        return 0
    value = _decode_leaf(item, raw, getattr(target, item.name, None))
    if not _assign(target, item, value):
        return 0
    log_debug("field_decoded", **make_event(item.key, item.path, {"kind": item.kind.value}))
    return 1


def _populate_struct(source: KeyValueSource, item: FieldPlan, target: Any) -> int:
    assert item.struct is not None
    current = getattr(target, item.name, None)
    if isinstance(current, item.declared_type):
        if item.kind is ShapeKind.STRUCT:
            if _is_frozen(item.declared_type):
                return 0
            return populate(source, item.struct, current)
        # an already allocated optional struct is only touched when its namespace has keys
        if not namespace_present(source, item.struct) or _is_frozen(item.declared_type):
            return 0
        return populate(source, item.struct, current)

    if not namespace_present(source, item.struct):
        log_trace("namespace_missing", **make_event(item.key, item.path, {"kind": item.kind.value}))
        return 0
    instance, populated = _allocate(source, item)
    if not _assign(target, item, instance):
        return 0
    log_debug("namespace_allocated", **make_event(item.key, item.path, {"fields": populated}))
    return populated


def _allocate(source: KeyValueSource, item: FieldPlan) -> tuple[Any, int]:
    """Build a new instance for a struct field from the values under its namespace.

    Present values become constructor arguments so a validating
    ``__post_init__`` sees them; only absent required fields are zero-filled.
    """

    assert item.struct is not None
    values, populated = _collect(source, item.struct)
    init_names = {field.name for field in dataclasses.fields(item.declared_type) if field.init}
    try:
        instance = instantiate(item.declared_type, {k: v for k, v in values.items() if k in init_names})
    except Exception as exc:  # noqa: BLE001 - user __post_init__ may raise anything
        raise ConversionFailed(item.key, exc) from exc
    for child in item.struct.fields:
        if child.name in values and child.name not in init_names:
            _assign(instance, child, values[child.name])
    return instance, populated


def _collect(source: KeyValueSource, plan: StructPlan) -> tuple[dict[str, Any], int]:
    values: dict[str, Any] = {}
    populated = 0
    for item in plan.fields:
        if item.kind is ShapeKind.SKIP:
            log_trace("field_skipped", **make_event(item.key, item.path, {"kind": item.kind.value}))
        elif item.kind in (ShapeKind.STRUCT, ShapeKind.OPTIONAL_STRUCT):
            assert item.struct is not None
            if item.kind is ShapeKind.STRUCT and _is_frozen(item.declared_type):
                continue
            if not namespace_present(source, item.struct):
                log_trace("namespace_missing", **make_event(item.key, item.path, {"kind": item.kind.value}))
                continue
            values[item.name], count = _allocate(source, item)
            populated += count
            log_debug("namespace_allocated", **make_event(item.key, item.path, {"fields": count}))
        else:
            raw, found = source.lookup(item.key)
            if not found:
                log_trace("field_missing", **make_event(item.key, item.path))
                continue
            values[item.name] = _decode_leaf(item, raw, None)
            populated += 1
            log_debug("field_decoded", **make_event(item.key, item.path, {"kind": item.kind.value}))
    return values, populated


def _decode_leaf(item: FieldPlan, raw: str, current: Any) -> Any:
    if item.kind is ShapeKind.CUSTOM:
        return _unmarshal(item, raw, current)
    return convert(raw, item.declared_type, path=item.key)


def _unmarshal(item: FieldPlan, raw: str, current: Any) -> Any:
    custom_type = _custom_type(item)
    try:
        instance = current if isinstance(current, custom_type) else custom_type()
        instance.unmarshal_env(raw)
    except Exception as exc:  # noqa: BLE001 - user hooks may raise anything
        raise ConversionFailed(item.key, exc) from exc
    return instance


def _custom_type(item: FieldPlan) -> type:
    base = strip_annotated(item.declared_type)
    pointee = unwrap_optional(base)
    return strip_annotated(pointee) if pointee is not None else base


def _assign(target: Any, item: FieldPlan, value: Any) -> bool:
    try:
        setattr(target, item.name, value)
    except (dataclasses.FrozenInstanceError, AttributeError):
        log_debug("field_not_settable", **make_event(item.key, item.path))
        return False
    return True


def _is_frozen(cls: type) -> bool:
    params = getattr(cls, "__dataclass_params__", None)
    return bool(params is not None and params.frozen)
