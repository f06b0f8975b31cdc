"""Read-only preview of an import file."""

import logging

from cloudlaunch_data.exceptions import FormatError, StructuralError
from cloudlaunch_data.models.export_import import FileAnalysis, ValidationIssue
from cloudlaunch_data.services.format_detector import detect_format
from cloudlaunch_data.services.import_service import decode_file, ordered_collections
from cloudlaunch_data.validation.validator import validate_record_batch

logger = logging.getLogger(__name__)


class ImportAnalyzer:
    """Decodes and validates an import file without writing anything."""

    def analyze_import_file(
        self,
        file_text: str,
        format_hint: str | None = None,
        filename: str | None = None,
    ) -> FileAnalysis:
        """Analyze an import file.

        `has_valid_structure` reflects only whether the file decoded; records
        failing field validation are reported in `invalid_record_counts` and
        `validation_errors` without affecting it.

        Args:
            file_text: File content
            format_hint: Format suggested by the caller, if any
            filename: File name used for extension-based detection

        Returns:
            FileAnalysis with per-collection record counts
        """
        data_format = detect_format(format_hint, filename, file_text)

        try:
            payload = decode_file(file_text, data_format)
        except (StructuralError, FormatError) as e:
            logger.info("Import file has an invalid %s structure: %s", data_format.value, e)
            return FileAnalysis(format=data_format, has_valid_structure=False, errors=[str(e)])

        analysis = FileAnalysis(format=payload.format, has_valid_structure=True)
        for name, schema, records in ordered_collections(payload.data):
            analysis.record_counts[name] = len(records)

            if schema is None:
                analysis.invalid_record_counts[name] = len(records)
                analysis.validation_errors.extend(
                    ValidationIssue(
                        path=f"{name}[{index}]",
                        message=f"unsupported record type: {name}",
                        code="unsupported_entity",
                    )
                    for index in range(len(records))
                )
                continue

            outcome = validate_record_batch(records, schema, schema.collection_name)
            invalid = len(records) - len(outcome.data)
            if invalid:
                analysis.invalid_record_counts[name] = invalid
                analysis.validation_errors.extend(outcome.errors)

        return analysis
