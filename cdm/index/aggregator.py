"""Post-pass reconciliation of declared summary totals."""

from __future__ import annotations

from decimal import Decimal

from cdm.index.models import ValidationIndex
from cdm.records.models import SUMMARY_LABEL
from cdm.rules.models import ValidationRules
from cdm.validation.models import Finding, SummaryTotal
from cdm.validators.helpers import approximately_equal, make_finding


def validate_summary_totals(index: ValidationIndex, rules: ValidationRules) -> list[Finding]:
    """Compare each TotalClaimedAmount with the sum of its details' ClaimedAmount.

    Summaries without any resolving detail are checked too (accumulated 0).
    """

    findings: list[Finding] = []
    tolerance = rules.tolerances.summary_total
    for entry in index.summaries.values():
        declared = entry.total_claimed_amount
        accumulated = entry.accumulated_detail_amount
        if approximately_equal(declared, accumulated, tolerance):
            continue
        findings.append(
            make_finding(
                entry.line_number,
                SUMMARY_LABEL,
                "TotalClaimedAmount",
                f"TotalClaimedAmount ({declared}) does not match sum of "
                f"detail ClaimedAmounts ({accumulated:.2f})",
            )
        )
    return findings


def summary_totals(index: ValidationIndex) -> tuple[dict[str, SummaryTotal], Decimal]:
    """Per-summary totals keyed by the id as first seen, plus the file total."""

    totals: dict[str, SummaryTotal] = {}
    file_total = Decimal("0")
    for entry in index.summaries.values():
        totals[entry.summary_record_id] = SummaryTotal(
            summary_record_id=entry.summary_record_id,
            service_description=entry.service_description,
            total_claimed_amount=entry.total_claimed_amount,
            detail_record_count=entry.detail_record_count,
        )
        file_total += entry.total_claimed_amount
    return totals, file_total
