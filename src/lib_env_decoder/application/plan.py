"""Shape planner compiling dataclass types into decode plans.

Purpose
-------
Resolve every field of a target dataclass type into a closed set of shape
kinds (leaf, custom, nested struct, optional struct, skipped) together with
its fully derived key. The populator walks these plans instead of inspecting
types while it mutates the target.

Contents
--------
* :class:`ShapeKind` – the closed set of field shapes.
* :class:`FieldPlan` / :class:`StructPlan` – immutable plan nodes.
* :func:`plan_for` – cached entry point; rejects cycles and key collisions.
* :func:`instantiate` – build an instance from field values, zero-filling required gaps.

System Role
-----------
Plans depend only on the target type and prefix, so they are cached and can be
shared by any number of decoders and threads.
"""

from __future__ import annotations

import dataclasses
import typing
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import Any, Iterator, Mapping

from ..domain.errors import KeyCollision, UnsupportedType
from ..domain.fields import field_options
from ..domain.keys import derive_key, key_segment, join_key
from .convert import is_class, is_custom, is_skipped, strip_annotated, unwrap_optional, zero_value


class ShapeKind(str, Enum):
    """Closed set of field shapes understood by the populator."""

    LEAF = "leaf"
    CUSTOM = "custom"
    STRUCT = "struct"
    OPTIONAL_STRUCT = "optional_struct"
    SKIP = "skip"


@dataclass(frozen=True, slots=True)
class FieldPlan:
    """Plan for one dataclass field.

    ``key`` is the lookup key for leaves and custom fields, and the namespace
    prefix for nested structs (equal to the parent prefix when embedded).
    """

    name: str
    path: str
    kind: ShapeKind
    key: str
    declared_type: Any
    struct: StructPlan | None = None

    def leaf_keys(self) -> Iterator[tuple[str, str]]:
        """Yield ``(key, path)`` for every value this field may read."""

        if self.kind in (ShapeKind.LEAF, ShapeKind.CUSTOM):
            yield self.key, self.path
        elif self.struct is not None:
            yield from self.struct.leaf_keys()


@dataclass(frozen=True, slots=True)
class StructPlan:
    """Plan for a dataclass type under a given prefix."""

    target_type: type
    prefix: str
    fields: tuple[FieldPlan, ...]

    def leaf_keys(self) -> Iterator[tuple[str, str]]:
        for item in self.fields:
            yield from item.leaf_keys()

    def keys(self) -> list[str]:
        """Return every key consulted when decoding this plan, in traversal order."""

        return [key for key, _ in self.leaf_keys()]


@lru_cache(maxsize=256)
def plan_for(target_type: type, prefix: str = "") -> StructPlan:
    """Return the decode plan for *target_type* under *prefix*.

    Raises
    ------
    UnsupportedType
        When *target_type* is not a dataclass, its annotations cannot be
        resolved, or its type graph is cyclic.
    KeyCollision
        When two fields derive the same key.

    Examples
    --------
    >>> from dataclasses import dataclass
    >>> @dataclass
    ... class Demo:
    ...     port: int = 0
    ...     host: str = ""
    >>> plan_for(Demo, "APP").keys()
    ['APP_PORT', 'APP_HOST']
    """

    plan = _plan_struct(target_type, prefix, "", ())
    _check_collisions(plan)
    return plan


def _plan_struct(target_type: type, prefix: str, path: str, stack: tuple[type, ...]) -> StructPlan:
    if not dataclasses.is_dataclass(target_type):
        raise UnsupportedType(prefix, target_type, "expected a dataclass type")
    if target_type in stack:
        chain = " -> ".join(cls.__name__ for cls in (*stack, target_type))
        raise UnsupportedType(prefix, target_type, f"cyclic type graph ({chain})")
    hints = _resolve_hints(target_type, prefix)
    inner_stack = (*stack, target_type)
    planned = []
    for item in dataclasses.fields(target_type):
        if item.name.startswith("_"):
            continue
        planned.append(_plan_field(item, hints[item.name], prefix, path, inner_stack))
    return StructPlan(target_type=target_type, prefix=prefix, fields=tuple(planned))


def _plan_field(
    item: dataclasses.Field[Any],
    declared_type: Any,
    prefix: str,
    parent_path: str,
    stack: tuple[type, ...],
) -> FieldPlan:
    options = field_options(item)
    path = f"{parent_path}.{item.name}" if parent_path else item.name
    key = derive_key(prefix, item.name, options.explicit_key, options.split_words)

    if is_skipped(declared_type):
        return FieldPlan(item.name, path, ShapeKind.SKIP, key, declared_type)

    base = strip_annotated(declared_type)
    pointee = unwrap_optional(base)
    struct_type = strip_annotated(pointee) if pointee is not None else base
    if is_custom(struct_type) or not (is_class(struct_type) and dataclasses.is_dataclass(struct_type)):
        kind = ShapeKind.CUSTOM if is_custom(struct_type) else ShapeKind.LEAF
        return FieldPlan(item.name, path, kind, key, declared_type)

    if options.embedded and not options.explicit_key:
        namespace = prefix
    else:
        namespace = join_key(prefix, key_segment(item.name, options.explicit_key, options.split_words))
    nested = _plan_struct(struct_type, namespace, path, stack)
    kind = ShapeKind.OPTIONAL_STRUCT if pointee is not None else ShapeKind.STRUCT
    return FieldPlan(item.name, path, kind, namespace, struct_type, nested)


def _resolve_hints(target_type: type, prefix: str) -> dict[str, Any]:
    try:
        return typing.get_type_hints(target_type, include_extras=True)
    except (NameError, TypeError) as exc:
        raise UnsupportedType(prefix, target_type, f"cannot resolve annotations: {exc}") from exc


def _check_collisions(plan: StructPlan) -> None:
    seen: dict[str, str] = {}
    for key, path in plan.leaf_keys():
        if key in seen:
            raise KeyCollision(key, seen[key], path)
        seen[key] = path


def instantiate(target_type: type, values: Mapping[str, Any] | None = None) -> Any:
    """Return an instance of *target_type* built from *values*.

    ``values`` supplies constructor arguments by field name. Missing fields
    with defaults keep them; missing required fields receive the zero value of
    their declared type (nested dataclasses recursively). Errors raised by the
    constructor (a validating ``__post_init__``) propagate unchanged.

    Examples
    --------
    >>> from dataclasses import dataclass
    >>> @dataclass
    ... class Nested:
    ...     foo: str
    ...     bar: int
    >>> instantiate(Nested)
    Nested(foo='', bar=0)
    >>> instantiate(Nested, {"foo": "x"})
    Nested(foo='x', bar=0)
    """

    provided = values or {}
    hints = _resolve_hints(target_type, "")
    kwargs: dict[str, Any] = {}
    for item in dataclasses.fields(target_type):
        if not item.init:
            continue
        if item.name in provided:
            kwargs[item.name] = provided[item.name]
        elif item.default is dataclasses.MISSING and item.default_factory is dataclasses.MISSING:
            kwargs[item.name] = zero_value(hints[item.name], build=instantiate)
    return target_type(**kwargs)
