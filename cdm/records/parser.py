"""Record classifier and tolerant per-type parsers for CDM claim files.

Rules:
- Fields are split on TAB; list-valued fields are split on `|` when non-blank.
- Missing trailing fields leave optional attributes as None and mandatory text
  attributes as the empty string.
- Numeric text that fails to parse falls back to zero/None and is recorded in
  `unparsable_fields` so validators can report it.
"""

from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation

from cdm.records.models import (
    DETAIL_TAGS,
    FIELD_DELIMITER,
    FOOTER_TAGS,
    HEADER_TAGS,
    IGNORED_TAG_PREFIX,
    LIST_DELIMITER,
    SUMMARY_TAGS,
    ClassifiedLine,
    DetailRecord,
    FooterRecord,
    HeaderRecord,
    RecordKind,
    SummaryRecord,
    UnparsableField,
)
from cdm.utils.errors import RecordParseError

_DECIMAL_RE = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)")
_INTEGER_RE = re.compile(r"[+-]?\d+")
_BOM = "\ufeff"


def decode_line(raw: bytes, line_number: int) -> str:
    """Decode one physical line and strip its line terminator."""

    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise RecordParseError(
            f"Line is not valid UTF-8 text: {exc.reason}", line_number=line_number
        ) from exc

    if line_number == 1 and text.startswith(_BOM):
        text = text[len(_BOM) :]
    return text.rstrip("\r\n")


def is_skippable(text: str) -> bool:
    """Return True for blank and `#` comment lines."""

    stripped = text.strip()
    return not stripped or stripped.startswith("#")


def classify_line(text: str, line_number: int) -> ClassifiedLine | None:
    """Resolve a line to its record kind, or None for blank/comment lines."""

    if is_skippable(text):
        return None

    tag = text.split(FIELD_DELIMITER, 1)[0]
    return ClassifiedLine(kind=_kind_for_tag(tag), tag=tag, line_number=line_number, text=text)


def _kind_for_tag(tag: str) -> RecordKind:
    if tag in HEADER_TAGS:
        return "header"
    if tag in SUMMARY_TAGS:
        return "summary"
    if tag in DETAIL_TAGS:
        return "detail"
    if tag in FOOTER_TAGS:
        return "footer"
    if tag.startswith(IGNORED_TAG_PREFIX):
        return "ignored"
    return "unknown"


class _FieldReader:
    """Positional access to split fields with tolerant numeric parsing."""

    def __init__(self, text: str) -> None:
        self._fields = text.split(FIELD_DELIMITER)
        self.unparsable: list[UnparsableField] = []

    def text(self, index: int) -> str:
        if index < len(self._fields):
            return self._fields[index]
        return ""

    def optional(self, index: int) -> str | None:
        value = self.text(index)
        return value if value.strip() else None

    def items(self, index: int) -> list[str]:
        value = self.text(index)
        if not value.strip():
            return []
        return value.split(LIST_DELIMITER)

    def decimal(self, index: int, field_name: str) -> Decimal:
        value = self.optional_decimal(index, field_name)
        return Decimal("0") if value is None else value

    def optional_decimal(self, index: int, field_name: str) -> Decimal | None:
        value = self.optional(index)
        if value is None:
            return None
        return self._to_decimal(value, field_name)

    def decimals(self, index: int, field_name: str) -> list[Decimal]:
        values: list[Decimal] = []
        for item in self.items(index):
            parsed = self._to_decimal(item, field_name)
            if parsed is not None:
                values.append(parsed)
        return values

    def integer(self, index: int, field_name: str) -> int:
        value = self.optional_integer(index, field_name)
        return 0 if value is None else value

    def optional_integer(self, index: int, field_name: str) -> int | None:
        value = self.optional(index)
        if value is None:
            return None
        if _INTEGER_RE.fullmatch(value.strip()):
            try:
                return int(value.strip())
            except ValueError:
                # beyond the interpreter's integer string conversion limit
                pass
        self.unparsable.append(UnparsableField(field_name=field_name, raw=value))
        return None

    def _to_decimal(self, raw: str, field_name: str) -> Decimal | None:
        candidate = raw.strip()
        if _DECIMAL_RE.fullmatch(candidate):
            try:
                return Decimal(candidate)
            except InvalidOperation:
                pass
        self.unparsable.append(UnparsableField(field_name=field_name, raw=raw))
        return None


def parse_header(text: str, line_number: int) -> HeaderRecord:
    """Parse a CDMH line into a HeaderRecord."""

    reader = _FieldReader(text)
    return HeaderRecord(
        line_number=line_number,
        record_type=reader.text(0),
        message_version=reader.text(1),
        message_id=reader.text(2),
        message_created_datetime=reader.text(3),
        profile=reader.text(4),
        profile_version=reader.text(5),
        related_message_id=reader.optional(6),
        sales_report_id=reader.optional(7),
        usage_start_date=reader.optional(8),
        usage_end_date=reader.optional(9),
        sender_party_id=reader.text(10),
        sender_name=reader.text(11),
        service_description=reader.optional(12),
        recipient_party_id=reader.optional(13),
        recipient_name=reader.optional(14),
        claiming_round=reader.optional_integer(15, "ClaimingRound"),
        sent_on_behalf_of_party_id=reader.optional(16),
        sent_on_behalf_of_name=reader.optional(17),
        unparsable_fields=tuple(reader.unparsable),
    )


def parse_summary(text: str, line_number: int) -> SummaryRecord:
    """Parse a CS01 line into a SummaryRecord."""

    reader = _FieldReader(text)
    record = SummaryRecord(
        line_number=line_number,
        record_type=reader.text(0),
        summary_record_id=reader.text(1),
        invoice_reference=reader.optional(2),
        rights_controller_name=reader.optional(3),
        rights_controller_party_id=reader.optional(4),
        distribution_channel=reader.optional(5),
        distribution_channel_dpid=reader.optional(6),
        start_of_claim_period=reader.optional(7),
        end_of_claim_period=reader.optional(8),
        commercial_model=reader.text(9),
        use_type=reader.text(10),
        territory=reader.text(11),
        service_description=reader.optional(12),
        currency_of_reporting=reader.optional(13),
        currency_of_invoicing=reader.optional(14),
        exchange_rate=reader.optional_decimal(15, "ExchangeRate"),
        exchange_rate_source=reader.optional(16),
        start_date_of_currency_exchange=reader.optional(17),
        end_date_of_currency_exchange=reader.optional(18),
        rights_type_split_mechanical=reader.decimal(19, "RightsTypeSplitMechanical"),
        rights_type_split_performing=reader.decimal(20, "RightsTypeSplitPerforming"),
        total_market_share=reader.optional_decimal(21, "TotalMarketShare"),
        total_claimed_amount=reader.decimal(22, "TotalClaimedAmount"),
    )
    record.unparsable_fields = tuple(reader.unparsable)
    return record


def parse_detail(text: str, line_number: int) -> DetailRecord:
    """Parse a CD01 line into a DetailRecord."""

    reader = _FieldReader(text)
    record = DetailRecord(
        line_number=line_number,
        record_type=reader.text(0),
        claim_id=reader.text(1),
        summary_record_id=reader.text(2),
        dsp_resource_id=reader.text(3),
        resource_isrc=reader.optional(4),
        resource_title=reader.optional(5),
        resource_display_artist_name=reader.optional(6),
        resource_display_artist_party_id=reader.optional(7),
        licensor_work_id=reader.optional(8),
        musical_work_iswc=reader.optional(9),
        musical_work_title=reader.text(10),
        alternative_musical_work_titles=reader.items(11),
        composer_author_names=reader.items(12),
        composer_author_party_ids=reader.items(13),
        claim_basis=reader.text(14),
        share_claimed_mechanical=reader.decimal(15, "ShareClaimedMechanical"),
        share_claimed_performing=reader.decimal(16, "ShareClaimedPerforming"),
        blended_share=reader.decimal(17, "BlendedShareClaimedForMechAndPerf"),
        sales_transaction_id=reader.optional(18),
        usages=reader.decimal(19, "Usages"),
        percentage_of_resource_in_release=reader.optional_decimal(
            20, "PercentageOfResourceInRelease"
        ),
        revenue_in_currency_of_reporting=reader.optional_decimal(
            21, "GeneratedRevenueInCurrencyOfReporting"
        ),
        revenue_in_currency_of_invoicing=reader.optional_decimal(
            22, "GeneratedRevenueInCurrencyOfInvoicing"
        ),
        claimed_amount_mechanical=reader.decimal(23, "ClaimedAmountMechanical"),
        claimed_amount_performing=reader.decimal(24, "ClaimedAmountPerforming"),
        tariff_parameter_types=reader.items(25),
        tariff_parameter_values=reader.decimals(26, "TariffParameterValue"),
        claimed_amount=reader.decimal(27, "ClaimedAmount"),
    )
    record.unparsable_fields = tuple(reader.unparsable)
    return record


def parse_footer(text: str, line_number: int) -> FooterRecord:
    """Parse an SRFO line into a FooterRecord."""

    reader = _FieldReader(text)
    record_type = reader.text(0)
    number_of_lines = reader.integer(1, "NumberOfLinesInReport")
    number_of_summaries = reader.integer(2, "NumberOfSummaryRecords")
    return FooterRecord(
        line_number=line_number,
        record_type=record_type,
        number_of_lines_in_report=number_of_lines,
        number_of_summary_records=number_of_summaries,
        unparsable_fields=tuple(reader.unparsable),
    )
