"""Record validation against the per-entity schemas.

Errors are collected per field rather than raised, so one record can report
every problem it has and one bad record never stops a batch.
"""

import logging
import re
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from cloudlaunch_data.models.export_import import ValidationIssue
from cloudlaunch_data.validation.schemas import FieldRule, FieldType, RecordSchema

logger = logging.getLogger(__name__)

_INTEGER_PATTERN = re.compile(r"^[+-]?\d+$")
_MISSING = object()


class ValidationOutcome(BaseModel):
    """Result of validating one record or a batch of records."""

    is_valid: bool
    data: Any = None
    errors: list[ValidationIssue] = Field(default_factory=list)


class _FieldProblem(Exception):
    """Internal signal carrying the code and message for one field."""

    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code
        self.message = message


def _is_blank(rule: FieldRule, value: Any) -> bool:
    if value is _MISSING or value is None:
        return True
    # Whitespace is a real value for optional free-text fields
    if isinstance(value, str) and not value.strip():
        return rule.required or rule.type is not FieldType.STRING or rule.choices is not None
    return False


def _coerce(rule: FieldRule, value: Any) -> Any:
    """Coerce a raw value to the rule's type."""
    if rule.type is FieldType.INTEGER:
        if isinstance(value, bool):
            raise _FieldProblem("invalid_type", f"{rule.name} must be an integer")
        if isinstance(value, int):
            return value
        if isinstance(value, float) and value.is_integer():
            return int(value)
        if isinstance(value, str):
            text = value.strip()
            if _INTEGER_PATTERN.match(text):
                return int(text)
            try:
                number = float(text)
            except ValueError:
                number = None
            if number is not None and number.is_integer():
                return int(number)
        raise _FieldProblem("invalid_type", f"{rule.name} must be an integer")

    if rule.type is FieldType.DATETIME:
        if isinstance(value, datetime):
            return value
        if isinstance(value, str):
            try:
                return datetime.fromisoformat(value.strip())
            except ValueError:
                pass
        raise _FieldProblem("invalid_date", f"{rule.name} must be an ISO-8601 date-time")

    if not isinstance(value, str):
        raise _FieldProblem("invalid_type", f"{rule.name} must be a string")
    return value


def _check_field(rule: FieldRule, value: Any) -> Any:
    """Run type, range and enum checks for a present value."""
    coerced = _coerce(rule, value)

    if rule.minimum is not None and coerced < rule.minimum:
        raise _FieldProblem(
            "out_of_range",
            rule.range_message or f"{rule.name} must be {rule.minimum} or greater",
        )
    if rule.maximum is not None and coerced > rule.maximum:
        raise _FieldProblem(
            "out_of_range",
            rule.range_message or f"{rule.name} must be {rule.maximum} or less",
        )

    if rule.max_length is not None and len(coerced) > rule.max_length:
        raise _FieldProblem(
            "too_long",
            f"{rule.name} must be {rule.max_length} characters or fewer",
        )

    if rule.reject_traversal and ".." in coerced:
        raise _FieldProblem(
            "invalid_path",
            f"{rule.name} must not contain relative path segments (..)",
        )

    if rule.choices is not None and coerced not in rule.choices:
        raise _FieldProblem(
            "invalid_enum",
            f"{rule.name} must be one of: {', '.join(rule.choices)}",
        )

    return coerced


def _prefix(entity_label: str, index: int | None) -> str:
    return entity_label if index is None else f"{entity_label}[{index}]"


def validate_record(
    raw: Any,
    schema: RecordSchema,
    entity_label: str,
    index: int | None = None,
) -> ValidationOutcome:
    """Validate a single untyped record.

    Args:
        raw: Decoded record (normally a dict keyed by wire field names)
        schema: Schema for the record's entity type
        entity_label: Label used in error paths ("game" gives "game.title")
        index: Position within a batch; switches paths to "label[index].field"

    Returns:
        ValidationOutcome with the typed record in `data` when valid
    """
    prefix = _prefix(entity_label, index)

    if not isinstance(schema, RecordSchema):
        return ValidationOutcome(
            is_valid=False,
            errors=[
                ValidationIssue(
                    path=prefix,
                    message="no usable validation schema for this record type",
                    code="unknown_error",
                )
            ],
        )

    if not isinstance(raw, dict):
        return ValidationOutcome(
            is_valid=False,
            errors=[
                ValidationIssue(
                    path=prefix,
                    message="record must be an object",
                    code="invalid_type",
                )
            ],
        )

    try:
        errors: list[ValidationIssue] = []
        values: dict[str, Any] = {}

        for rule in schema.fields:
            value = raw.get(rule.name, _MISSING)

            if _is_blank(rule, value):
                if rule.required:
                    errors.append(
                        ValidationIssue(
                            path=f"{prefix}.{rule.name}",
                            message=rule.required_message or f"{rule.name} is required",
                            code="required",
                        )
                    )
                else:
                    values[rule.name] = rule.default
                continue

            try:
                values[rule.name] = _check_field(rule, value)
            except _FieldProblem as problem:
                errors.append(
                    ValidationIssue(
                        path=f"{prefix}.{rule.name}",
                        message=problem.message,
                        code=problem.code,
                    )
                )

        if errors:
            return ValidationOutcome(is_valid=False, errors=errors)

        try:
            record = schema.model.model_validate(values)
        except PydanticValidationError as e:
            return ValidationOutcome(
                is_valid=False,
                errors=[
                    ValidationIssue(
                        path=".".join([prefix, *(str(part) for part in err["loc"])]),
                        message=err["msg"],
                        code=err["type"],
                    )
                    for err in e.errors()
                ],
            )

        return ValidationOutcome(is_valid=True, data=record)

    except Exception as e:
        logger.exception("Unexpected error validating %s: %s", prefix, e)
        return ValidationOutcome(
            is_valid=False,
            errors=[ValidationIssue(path=prefix, message=str(e), code="unknown_error")],
        )


def validate_record_batch(
    raws: list[Any],
    schema: RecordSchema,
    entity_label: str,
) -> ValidationOutcome:
    """Validate a batch of records of one entity type.

    Valid records are kept in `data` in their original order; errors from
    every invalid record are concatenated with indexed paths.

    Args:
        raws: Decoded records
        schema: Schema for the entity type
        entity_label: Collection label used in error paths ("games[1].title")

    Returns:
        ValidationOutcome, valid only if every record validated cleanly
    """
    valid_records: list[Any] = []
    errors: list[ValidationIssue] = []

    for index, raw in enumerate(raws):
        outcome = validate_record(raw, schema, entity_label, index=index)
        if outcome.is_valid:
            valid_records.append(outcome.data)
        else:
            errors.extend(outcome.errors)

    return ValidationOutcome(is_valid=not errors, data=valid_records, errors=errors)
