"""
Partial-update compiler.

Turns a sparse UpdateTrackerRequest into a list of set-clauses against one
composite key. Only explicitly provided fields produce clauses; ``updatedAt``
is always set; identity fields are never touched.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping, Optional, Tuple, Type, TypeVar, Union

from pydantic import BaseModel, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from problem_tracker.core.errors import FieldError, ValidationError
from problem_tracker.db.base import ITEM_EXISTS, CompositeKey
from problem_tracker.models.pydantic_models.tracker import (
    IMMUTABLE_FIELDS,
    NULLABLE_FIELDS,
    Tracker,
    UpdateTrackerRequest,
)

ModelT = TypeVar("ModelT", bound=BaseModel)

_timestamp_adapter = TypeAdapter(datetime)


@dataclass(frozen=True)
class SetClause:
    field: str
    value: Any


@dataclass(frozen=True)
class UpdateSpec:
    key: CompositeKey
    clauses: Tuple[SetClause, ...]
    condition: str = ITEM_EXISTS

    def as_mapping(self) -> dict:
        return {clause.field: clause.value for clause in self.clauses}

    @property
    def fields(self) -> Tuple[str, ...]:
        return tuple(clause.field for clause in self.clauses)


def format_timestamp(value: datetime) -> str:
    return _timestamp_adapter.dump_python(value, mode="json")


def coerce(model_cls: Type[ModelT], fields: Union[ModelT, Mapping[str, Any]]) -> ModelT:
    """Validate raw fields into ``model_cls``, raising our ValidationError."""
    if isinstance(fields, model_cls):
        return fields
    try:
        return model_cls.model_validate(fields)
    except PydanticValidationError as e:
        raise ValidationError.from_pydantic(e)


def compile_update(
    key: CompositeKey,
    changes: Union[UpdateTrackerRequest, Mapping[str, Any]],
    prior: Optional[Tracker] = None,
    now: Optional[datetime] = None,
) -> UpdateSpec:
    """
    Build the update for ``key`` from the explicitly provided fields of ``changes``.

    When ``prior`` is known the merged record is validated as a whole and
    ``updatedAt`` is moved strictly past ``prior.updated_at``.

    Raises:
        ValidationError: before anything is sent to the store.
    """
    changes = coerce(UpdateTrackerRequest, changes)
    provided = changes.provided_fields()

    null_errors = [
        FieldError(path=name, message="Field may not be null")
        for name, value in provided.items()
        if value is None and name not in NULLABLE_FIELDS
    ]
    if null_errors:
        raise ValidationError(null_errors)

    now = now or datetime.now(timezone.utc)

    if prior is not None:
        if now <= prior.updated_at:
            now = prior.updated_at + timedelta(microseconds=1)
        merged = prior.to_item()
        merged.update(provided)
        merged["updatedAt"] = format_timestamp(now)
        try:
            Tracker.model_validate(merged)
        except PydanticValidationError as e:
            raise ValidationError.from_pydantic(e)

    clauses = [
        SetClause(field=name, value=value)
        for name, value in provided.items()
        if name not in IMMUTABLE_FIELDS
    ]
    clauses.append(SetClause(field="updatedAt", value=format_timestamp(now)))
    return UpdateSpec(key=key, clauses=tuple(clauses))


def apply_update(item: Mapping[str, Any], spec: UpdateSpec) -> dict:
    """Project ``spec`` onto a stored item, leaving every other field as is."""
    updated = dict(item)
    updated.update(spec.as_mapping())
    return updated
