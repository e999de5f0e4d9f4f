"""File-level structure checks driven only by index metadata."""

from __future__ import annotations

from cdm.index.models import ValidationIndex
from cdm.records.models import FOOTER_LABEL, HEADER_LABEL
from cdm.validation.models import FILE_RECORD_TYPE, Finding
from cdm.validators.helpers import make_finding


def validate_structure(index: ValidationIndex) -> list[Finding]:
    """Check header/footer presence, placement, uniqueness and footer counts."""

    findings: list[Finding] = []
    header = index.header
    footer = index.footer

    if header is None:
        findings.append(
            make_finding(
                0, FILE_RECORD_TYPE, "HeaderRecord", "File must contain a CDMH.01 header record"
            )
        )
    else:
        if header.line_number != 1:
            findings.append(
                make_finding(
                    header.line_number,
                    HEADER_LABEL,
                    "Position",
                    "CDMH.01 header record must be the first line, "
                    f"found at line {header.line_number}",
                )
            )
        for line_number in index.extra_header_lines:
            findings.append(
                make_finding(
                    line_number,
                    HEADER_LABEL,
                    "RecordType",
                    "File must contain exactly one CDMH.01 header record "
                    f"(first at line {header.line_number})",
                )
            )

    if footer is None:
        findings.append(
            make_finding(
                0, FILE_RECORD_TYPE, "FooterRecord", "File must contain an SRFO footer record"
            )
        )
        return findings

    if index.last_record_line > footer.line_number:
        findings.append(
            make_finding(
                footer.line_number,
                FOOTER_LABEL,
                "Position",
                "SRFO footer record must be the last record (data records found after footer)",
            )
        )

    for line_number in index.extra_footer_lines:
        findings.append(
            make_finding(
                line_number,
                FOOTER_LABEL,
                "RecordType",
                "File must contain exactly one SRFO footer record "
                f"(first at line {footer.line_number})",
            )
        )

    if footer.number_of_lines_in_report != index.total_lines:
        findings.append(
            make_finding(
                footer.line_number,
                FOOTER_LABEL,
                "NumberOfLinesInReport",
                f"NumberOfLinesInReport ({footer.number_of_lines_in_report}) does not match "
                f"actual line count ({index.total_lines})",
            )
        )

    if footer.number_of_summary_records != index.summary_record_count:
        findings.append(
            make_finding(
                footer.line_number,
                FOOTER_LABEL,
                "NumberOfSummaryRecords",
                f"NumberOfSummaryRecords ({footer.number_of_summary_records}) does not match "
                f"actual summary record count ({index.summary_record_count})",
            )
        )

    return findings
