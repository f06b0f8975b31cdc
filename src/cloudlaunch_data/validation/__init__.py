"""Schema registry and record validation."""

from cloudlaunch_data.validation.schemas import (
    ENTITY_ORDER,
    SCHEMAS,
    FieldRule,
    FieldType,
    RecordSchema,
    collection_name_for,
    get_schema_for,
)
from cloudlaunch_data.validation.validator import (
    ValidationOutcome,
    validate_record,
    validate_record_batch,
)

__all__ = [
    "ENTITY_ORDER",
    "SCHEMAS",
    "FieldRule",
    "FieldType",
    "RecordSchema",
    "collection_name_for",
    "get_schema_for",
    "ValidationOutcome",
    "validate_record",
    "validate_record_batch",
]
