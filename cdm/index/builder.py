"""First-pass index construction and duplicate detection."""

from __future__ import annotations

from cdm.index.models import SummaryIndexEntry, ValidationIndex, normalize_id
from cdm.records.models import (
    DETAIL_LABEL,
    SUMMARY_LABEL,
    DetailRecord,
    FooterRecord,
    HeaderRecord,
    SummaryRecord,
)
from cdm.validation.models import Finding
from cdm.validators.helpers import make_finding


class IndexBuilder:
    """Feed parsed records into a ValidationIndex, one at a time.

    Header and footer are kept whole (first occurrence wins; repeats are only
    remembered by line so the structure check can report them). Summaries are
    reduced to a SummaryIndexEntry and details only leave their claim id.
    """

    def __init__(self, index: ValidationIndex) -> None:
        self.index = index

    def add_header(self, record: HeaderRecord) -> None:
        self._mark_record_line(record.line_number)
        if self.index.header is None:
            self.index.header = record
        else:
            self.index.extra_header_lines.append(record.line_number)

    def add_footer(self, record: FooterRecord) -> None:
        if self.index.footer is None:
            self.index.footer = record
        else:
            self.index.extra_footer_lines.append(record.line_number)

    def add_ignored(self) -> None:
        self.index.ignored_record_count += 1

    def add_summary(self, record: SummaryRecord) -> list[Finding]:
        self.index.summary_record_count += 1
        self._mark_record_line(record.line_number)

        key = normalize_id(record.summary_record_id)
        if not key:
            return []

        if key in self.index.seen_summary_ids:
            first = self.index.summaries[key]
            return [
                make_finding(
                    record.line_number,
                    SUMMARY_LABEL,
                    "SummaryRecordId",
                    f"Duplicate SummaryRecordId '{record.summary_record_id}' "
                    f"(first seen at line {first.line_number})",
                )
            ]

        self.index.seen_summary_ids.add(key)
        self.index.summaries[key] = SummaryIndexEntry(
            summary_record_id=record.summary_record_id,
            line_number=record.line_number,
            service_description=record.service_description,
            total_claimed_amount=record.total_claimed_amount,
            rights_type_split_mechanical=record.rights_type_split_mechanical,
            rights_type_split_performing=record.rights_type_split_performing,
        )
        return []

    def add_detail(self, record: DetailRecord) -> list[Finding]:
        self.index.detail_record_count += 1
        self._mark_record_line(record.line_number)

        key = normalize_id(record.claim_id)
        if not key:
            return []

        if key in self.index.seen_claim_ids:
            return [
                make_finding(
                    record.line_number,
                    DETAIL_LABEL,
                    "ClaimId",
                    f"Duplicate ClaimId '{record.claim_id}'",
                )
            ]

        self.index.seen_claim_ids.add(key)
        return []

    def _mark_record_line(self, line_number: int) -> None:
        self.index.last_record_line = max(self.index.last_record_line, line_number)
