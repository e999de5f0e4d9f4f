"""Field validator for SRFO footer records."""

from __future__ import annotations

from cdm.records.models import FOOTER_LABEL, FOOTER_TAGS, FooterRecord
from cdm.rules.models import ValidationRules
from cdm.validation.models import Finding
from cdm.validators.helpers import make_finding, unparsable_findings


def validate_footer(record: FooterRecord, rules: ValidationRules) -> list[Finding]:
    findings: list[Finding] = []
    line = record.line_number

    if record.record_type not in FOOTER_TAGS:
        findings.append(
            make_finding(
                line,
                FOOTER_LABEL,
                "RecordType",
                f"RecordType must be 'SRFO', found '{record.record_type}'",
            )
        )

    if record.number_of_lines_in_report <= 0:
        findings.append(
            make_finding(
                line,
                FOOTER_LABEL,
                "NumberOfLinesInReport",
                "NumberOfLinesInReport must be positive, "
                f"found {record.number_of_lines_in_report}",
            )
        )

    if record.number_of_summary_records < 0:
        findings.append(
            make_finding(
                line,
                FOOTER_LABEL,
                "NumberOfSummaryRecords",
                "NumberOfSummaryRecords must be non-negative, "
                f"found {record.number_of_summary_records}",
            )
        )

    if rules.report_unparsable_numbers:
        findings.extend(unparsable_findings(line, FOOTER_LABEL, record.unparsable_fields))

    return findings
