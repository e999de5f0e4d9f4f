from __future__ import annotations

import csv
import io
from decimal import Decimal

from apps.cli.format_human import render_report
from apps.cli.format_machine import build_json_payload, render_csv
from cdm.validation.models import (
    Finding,
    SummaryTotal,
    ValidationResult,
    ValidationStatistics,
)


def _result() -> ValidationResult:
    findings = [
        Finding(
            line_number=7,
            record_type="SRFO",
            field_name="NumberOfSummaryRecords",
            message="NumberOfSummaryRecords (2) does not match actual summary record count (3)",
        ),
        Finding(
            line_number=4,
            record_type="CD01.01",
            field_name="ClaimedAmount",
            message="ClaimedAmount (1.00) should equal, with a comma",
        ),
        Finding(
            line_number=3,
            record_type="CD01.01",
            field_name="MusicalWorkComposerAuthorName/PartyId",
            message="Number of composer/author names (2) should match number of party IDs (1)",
            severity="warning",
        ),
        Finding(
            line_number=0,
            record_type="FILE",
            field_name="HeaderRecord",
            message="File must contain a CDMH.01 header record",
        ),
        Finding(
            line_number=5,
            record_type="ZZ01",
            field_name="RecordType",
            message="Unknown or unsupported record type: ZZ01",
            severity="warning",
        ),
    ]
    statistics = ValidationStatistics(
        total_lines=7,
        total_records=5,
        footer_records=1,
        summary_records=2,
        detail_records=2,
        summary_totals={
            "SUM-B": SummaryTotal(summary_record_id="SUM-B", total_claimed_amount=Decimal("2.5")),
            "SUM-A": SummaryTotal(
                summary_record_id="SUM-A",
                service_description="PremiumTier",
                total_claimed_amount=Decimal("10"),
                detail_record_count=2,
            ),
        },
        total_claimed_amount=Decimal("12.5"),
    )
    return ValidationResult.from_findings(findings, statistics)


def test_render_report_hides_warnings_unless_verbose() -> None:
    quiet = render_report(_result(), source_name="claims.tsv")
    verbose = render_report(_result(), source_name="claims.tsv", verbose=True)

    assert "result=FAILED" in quiet
    assert "errors: 3" in quiet
    assert "warnings: 2" in quiet
    assert "ZZ01" not in quiet
    assert "[ZZ01]" in verbose
    assert "  ! line 3: [MusicalWorkComposerAuthorName/PartyId]" in verbose


def test_render_report_lists_summary_breakdown_sorted() -> None:
    text = render_report(_result(), source_name="claims.tsv")

    assert "total_claimed_amount=12.50" in text
    assert text.index("SUM-A service=PremiumTier amount=10.00 details=2") < text.index(
        "SUM-B service=- amount=2.50 details=0"
    )


def test_json_payload_keeps_decimals_exact() -> None:
    payload = build_json_payload(_result())

    assert payload["isValid"] is False
    assert payload["errorCount"] == 3
    assert payload["warningCount"] == 2
    assert payload["statistics"]["totalClaimedAmount"] == "12.5"
    assert payload["findings"][0]["lineNumber"] == 7


def test_csv_rows_sorted_by_record_type_order_then_line() -> None:
    text = render_csv(_result())
    preamble = [line for line in text.splitlines() if line.startswith("#")]
    body = "\n".join(line for line in text.splitlines() if not line.startswith("#"))

    rows = list(csv.reader(io.StringIO(body)))

    assert "# Validation Status: FAILED" in preamble
    assert "#   SUM-A (PremiumTier): 10.00 (2 details)" in preamble
    assert rows[0] == ["RecordType", "LineNumber", "Severity", "FieldName", "ErrorMessage"]
    assert [(row[0], row[1], row[2]) for row in rows[1:]] == [
        ("FILE", "0", "Error"),
        ("CD01.01", "3", "Warning"),
        ("CD01.01", "4", "Error"),
        ("SRFO", "7", "Error"),
        ("ZZ01", "5", "Warning"),
    ]
    assert rows[3][4] == "ClaimedAmount (1.00) should equal, with a comma"
