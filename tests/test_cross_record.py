from __future__ import annotations

from decimal import Decimal

import pytest
from samples import detail_line, summary_line

from cdm.index.aggregator import summary_totals, validate_summary_totals
from cdm.index.builder import IndexBuilder
from cdm.index.cross_record import validate_cross_record
from cdm.index.models import ValidationIndex
from cdm.records.models import DetailRecord
from cdm.records.parser import parse_detail, parse_summary
from cdm.rules.loader import load_rules
from cdm.rules.models import ValidationRules
from cdm.validation.models import Finding


def _indexed(*summary_lines: str) -> ValidationIndex:
    index = ValidationIndex()
    builder = IndexBuilder(index)
    for offset, line in enumerate(summary_lines, start=2):
        builder.add_summary(parse_summary(line, offset))
    return index


def test_duplicate_summary_id_is_reported_case_insensitively() -> None:
    index = ValidationIndex()
    builder = IndexBuilder(index)

    assert builder.add_summary(parse_summary(summary_line(summary_record_id="SUM001"), 2)) == []
    findings = builder.add_summary(parse_summary(summary_line(summary_record_id="sum001"), 3))

    assert len(findings) == 1
    assert findings[0].line_number == 3
    assert findings[0].message == "Duplicate SummaryRecordId 'sum001' (first seen at line 2)"
    assert index.summary_record_count == 2
    assert list(index.summaries) == ["SUM001"]
    assert index.summaries["SUM001"].summary_record_id == "SUM001"


def test_duplicate_claim_id_reported_once_per_repeat() -> None:
    index = ValidationIndex()
    builder = IndexBuilder(index)

    results = [
        builder.add_detail(parse_detail(detail_line(claim_id=claim_id), line_number))
        for line_number, claim_id in ((3, "CLM001"), (4, "clm001"), (5, "Clm001"))
    ]

    assert results[0] == []
    assert [finding.line_number for finding in results[1] + results[2]] == [4, 5]
    assert all(finding.field_name == "ClaimId" for finding in results[1] + results[2])
    assert index.detail_record_count == 3


def test_blank_summary_id_is_counted_but_not_indexed() -> None:
    index = _indexed(summary_line(summary_record_id=" "))

    assert index.summary_record_count == 1
    assert index.summaries == {}


def test_cross_record_accumulates_and_checks_blended_share() -> None:
    index = _indexed(summary_line())
    lines = [
        (3, detail_line(claim_id="A", summary_record_id="sum001")),
        (4, detail_line(claim_id="B", blended_share="40", claimed_amount="100.00")),
        (5, "CDDM\tignored"),
        (6, "# comment"),
    ]

    findings = validate_cross_record(lines, index, load_rules())

    entry = index.summaries["SUM001"]
    assert entry.accumulated_detail_amount == Decimal("200.00")
    assert entry.detail_record_count == 2
    assert len(findings) == 1
    assert findings[0].line_number == 4
    assert findings[0].field_name == "BlendedShareClaimedForMechAndPerf"
    assert "calculated value (43.75)" in findings[0].message


def test_cross_record_reports_unknown_reference_once_per_detail() -> None:
    index = _indexed(summary_line())
    lines = [
        (3, detail_line(claim_id="A", summary_record_id="SUM999")),
        (4, detail_line(claim_id="B", summary_record_id="SUM999")),
        (5, detail_line(claim_id="C", summary_record_id="")),
    ]

    findings = validate_cross_record(lines, index, load_rules())

    assert [finding.line_number for finding in findings] == [3, 4]
    assert findings[0].message == "SummaryRecordId 'SUM999' does not reference any CS01 record"
    assert index.summaries["SUM001"].accumulated_detail_amount == Decimal("0")


def test_cross_record_turns_failing_check_into_parse_error(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    index = _indexed(summary_line())
    calls: list[int] = []

    def flaky_check(
        record: DetailRecord, index: ValidationIndex, rules: ValidationRules
    ) -> list[Finding]:
        calls.append(record.line_number)
        if record.line_number == 3:
            raise ArithmeticError("overflow")
        return []

    monkeypatch.setattr("cdm.index.cross_record.check_detail", flaky_check)
    lines = [
        (3, detail_line(claim_id="A")),
        (4, detail_line(claim_id="B")),
    ]

    findings = validate_cross_record(lines, index, load_rules())

    assert calls == [3, 4]
    assert len(findings) == 1
    assert findings[0].line_number == 3
    assert findings[0].record_type == "UNKNOWN"
    assert findings[0].field_name == "Parse"
    assert findings[0].message == "Error parsing line: overflow"


def test_aggregator_tolerance_boundary() -> None:
    index = _indexed(
        summary_line(summary_record_id="EXACT"),
        summary_line(summary_record_id="EDGE"),
        summary_line(summary_record_id="OVER"),
        summary_line(summary_record_id="EMPTY", total_claimed_amount="0"),
        summary_line(summary_record_id="ORPHAN"),
    )
    index.summaries["EXACT"].accumulated_detail_amount = Decimal("100.00")
    index.summaries["EDGE"].accumulated_detail_amount = Decimal("99.98")
    index.summaries["OVER"].accumulated_detail_amount = Decimal("97.50")

    findings = validate_summary_totals(index, load_rules())

    assert [finding.line_number for finding in findings] == [4, 6]
    assert findings[0].message == (
        "TotalClaimedAmount (100.00) does not match sum of detail ClaimedAmounts (97.50)"
    )
    assert findings[1].message == (
        "TotalClaimedAmount (100.00) does not match sum of detail ClaimedAmounts (0.00)"
    )


def test_summary_totals_keyed_by_first_seen_id() -> None:
    index = _indexed(
        summary_line(summary_record_id="Sum-A", total_claimed_amount="10.50"),
        summary_line(summary_record_id="SUM-B", total_claimed_amount="4.25"),
    )
    index.summaries["SUM-A"].detail_record_count = 3

    totals, file_total = summary_totals(index)

    assert list(totals) == ["Sum-A", "SUM-B"]
    assert totals["Sum-A"].detail_record_count == 3
    assert file_total == Decimal("14.75")
