# Athena Records
# File: record_schema.py
# Version: v1

"""Column bindings declared on destination record types.

A destination record is a plain dataclass whose fields name the Athena
column they are filled from::

    @dataclass
    class Computer:
        id: int = column("id")
        name: str = column("name")
        seen_at: Optional[datetime] = column("last_seen")

Fields annotated ``Optional[X]`` (or ``X | None``) are nullable: SQL NULL
cells become None instead of raising.
"""

from __future__ import annotations

import dataclasses
import logging
import types
import typing
from dataclasses import dataclass
from typing import Any, Dict, Iterator, Optional, Union

from .errors import (
    DuplicateBindingError,
    EmptyRecordError,
    InvalidDestinationShapeError,
    MissingBindingError,
)

logger = logging.getLogger(__name__)

COLUMN_METADATA_KEY = "athena_column"

_MISSING = dataclasses.MISSING


def column(name: str, *, default: Any = _MISSING, default_factory: Any = _MISSING, **kwargs: Any) -> Any:
    """Declare a dataclass field bound to the Athena column ``name``.

    Extra keyword arguments are forwarded to :func:`dataclasses.field`.
    Without an explicit default the field gets ``None`` so records can be
    declared in any field order.
    """
    if default is not _MISSING and default_factory is not _MISSING:
        raise ValueError("cannot specify both default and default_factory")

    metadata = dict(kwargs.pop("metadata", None) or {})
    metadata[COLUMN_METADATA_KEY] = name

    if default is _MISSING and default_factory is _MISSING:
        default = None

    if default_factory is not _MISSING:
        return dataclasses.field(default_factory=default_factory, metadata=metadata, **kwargs)
    return dataclasses.field(default=default, metadata=metadata, **kwargs)


def _is_nullable(annotation: Any) -> bool:
    origin = typing.get_origin(annotation)
    if origin is Union or origin is getattr(types, "UnionType", None):
        return type(None) in typing.get_args(annotation)
    return annotation is None or annotation is type(None)


@dataclass(frozen=True)
class FieldBinding:
    """One destination field and the column it reads from."""

    field_name: str
    column_name: str
    nullable: bool


@dataclass(frozen=True)
class RecordSchema:
    """Column name -> field binding, derived from a destination record type."""

    record_type: type
    bindings: Dict[str, FieldBinding]

    def __len__(self) -> int:
        return len(self.bindings)

    def __iter__(self) -> Iterator[FieldBinding]:
        return iter(self.bindings.values())

    def __contains__(self, column_name: object) -> bool:
        return column_name in self.bindings

    @property
    def column_names(self) -> frozenset[str]:
        return frozenset(self.bindings)


def resolve_record_schema(record_type: Any) -> RecordSchema:
    """Build the RecordSchema for a dataclass record type.

    Raises InvalidDestinationShapeError when ``record_type`` is not a
    dataclass class (instances, dicts, primitives and plain classes are all
    rejected), EmptyRecordError when it declares no fields,
    MissingBindingError for a field without a column name and
    DuplicateBindingError when two fields claim the same column.
    """
    if not isinstance(record_type, type) or not dataclasses.is_dataclass(record_type):
        raise InvalidDestinationShapeError(
            "invalid record type: expected a dataclass class, "
            f"got {type(record_type).__name__}: {record_type!r}",
            destination=record_type,
        )

    fields = dataclasses.fields(record_type)
    if not fields:
        raise EmptyRecordError(record_type)

    try:
        hints = typing.get_type_hints(record_type)
    except (NameError, TypeError) as exc:
        raise InvalidDestinationShapeError(
            f"cannot resolve annotations of {record_type.__qualname__}: {exc}",
            destination=record_type,
        ) from exc

    bindings: Dict[str, FieldBinding] = {}
    for f in fields:
        if not f.init:
            raise InvalidDestinationShapeError(
                f"field '{f.name}' of {record_type.__qualname__} is declared with "
                "init=False and cannot be filled from a result set",
                destination=record_type,
            )

        column_name: Optional[str] = f.metadata.get(COLUMN_METADATA_KEY)
        if not column_name:
            raise MissingBindingError(record_type, f.name)

        existing = bindings.get(column_name)
        if existing is not None:
            raise DuplicateBindingError(record_type, column_name, (existing.field_name, f.name))

        bindings[column_name] = FieldBinding(
            field_name=f.name,
            column_name=column_name,
            nullable=_is_nullable(hints.get(f.name, f.type)),
        )

    logger.debug(
        "Resolved record schema for %s: %s",
        record_type.__qualname__,
        {b.column_name: b.field_name for b in bindings.values()},
    )
    return RecordSchema(record_type=record_type, bindings=bindings)
