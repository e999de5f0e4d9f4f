"""JSON and CSV validation report rendering."""

from __future__ import annotations

import csv
import io
import json
from typing import Any

from cdm.records.models import (
    DETAIL_TAGS,
    FOOTER_TAGS,
    HEADER_TAGS,
    SUMMARY_TAGS,
)
from cdm.validation.models import FILE_RECORD_TYPE, Finding, ValidationResult

CSV_COLUMNS = ("RecordType", "LineNumber", "Severity", "FieldName", "ErrorMessage")
_SEVERITY_ORDER = {"error": 0, "warning": 1, "info": 2}
_OTHER_RECORD_ORDER = 99


def build_json_payload(result: ValidationResult) -> dict[str, Any]:
    """camelCase payload; decimal amounts stay exact as strings."""

    payload = result.model_dump(mode="json", by_alias=True)
    payload["errorCount"] = result.error_count
    payload["warningCount"] = result.warning_count
    return payload


def render_json(result: ValidationResult) -> str:
    return json.dumps(build_json_payload(result), ensure_ascii=False, indent=2)


def render_csv(result: ValidationResult) -> str:
    """Render a commented preamble followed by one CSV row per finding."""

    stats = result.statistics
    buffer = io.StringIO()
    preamble = [
        "CDM Validation Results",
        f"Validation Status: {'PASSED' if result.is_valid else 'FAILED'}",
        "",
        "Statistics:",
        f"Total Lines: {stats.total_lines}",
        f"Total Records: {stats.total_records}",
        f"Header Records: {stats.header_records}",
        f"Summary Records: {stats.summary_records}",
        f"Detail Records: {stats.detail_records}",
        f"Footer Records: {stats.footer_records}",
        f"Ignored Records: {stats.ignored_records}",
        "",
        "Financial Totals:",
        f"File Total: {stats.total_claimed_amount:.2f}",
    ]
    if stats.summary_totals:
        preamble.extend(["", "Summary Breakdown:"])
        for summary_id in sorted(stats.summary_totals):
            total = stats.summary_totals[summary_id]
            description = f" ({total.service_description})" if total.service_description else ""
            preamble.append(
                f"  {summary_id}{description}: {total.total_claimed_amount:.2f} "
                f"({total.detail_record_count} details)"
            )
    preamble.extend(
        [
            "",
            f"Total Errors: {result.error_count}",
            f"Total Warnings: {result.warning_count}",
            "",
        ]
    )
    for line in preamble:
        buffer.write(f"# {line}".rstrip() + "\n")

    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_COLUMNS)
    for finding in sorted(result.findings, key=_csv_sort_key):
        writer.writerow(
            [
                finding.record_type,
                finding.line_number,
                finding.severity.capitalize(),
                finding.field_name,
                finding.message,
            ]
        )
    return buffer.getvalue()


def _csv_sort_key(finding: Finding) -> tuple[int, int, int]:
    return (
        _record_type_order(finding.record_type),
        finding.line_number,
        _SEVERITY_ORDER[finding.severity],
    )


def _record_type_order(record_type: str) -> int:
    if record_type == FILE_RECORD_TYPE:
        return 0
    for order, tags in enumerate((HEADER_TAGS, SUMMARY_TAGS, DETAIL_TAGS, FOOTER_TAGS), start=1):
        if record_type in tags:
            return order
    return _OTHER_RECORD_ORDER
