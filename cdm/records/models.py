"""Typed record definitions for CDM claim files.

Header and footer records are kept for the whole run; summary and detail
records are transient and only live for the loop iteration that parsed them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Literal

RecordKind = Literal["header", "summary", "detail", "footer", "ignored", "unknown"]

HEADER_TAGS = frozenset({"CDMH.01", "CDMH"})
SUMMARY_TAGS = frozenset({"CS01.01", "CS01"})
DETAIL_TAGS = frozenset({"CD01.01", "CD01"})
FOOTER_TAGS = frozenset({"SRFO"})
IGNORED_TAG_PREFIX = "CDD"

FIELD_DELIMITER = "\t"
LIST_DELIMITER = "|"

# Record type labels used on findings.
HEADER_LABEL = "CDMH.01"
SUMMARY_LABEL = "CS01.01"
DETAIL_LABEL = "CD01.01"
FOOTER_LABEL = "SRFO"


@dataclass(frozen=True)
class UnparsableField:
    """Non-blank numeric field text that could not be parsed."""

    field_name: str
    raw: str


@dataclass(frozen=True)
class ClassifiedLine:
    """One non-comment physical line resolved to a record kind."""

    kind: RecordKind
    tag: str
    line_number: int
    text: str


@dataclass(frozen=True)
class HeaderRecord:
    """CDMH header record, one per file."""

    line_number: int
    record_type: str = ""
    message_version: str = ""
    message_id: str = ""
    message_created_datetime: str = ""
    profile: str = ""
    profile_version: str = ""
    related_message_id: str | None = None
    sales_report_id: str | None = None
    usage_start_date: str | None = None
    usage_end_date: str | None = None
    sender_party_id: str = ""
    sender_name: str = ""
    service_description: str | None = None
    recipient_party_id: str | None = None
    recipient_name: str | None = None
    claiming_round: int | None = None
    sent_on_behalf_of_party_id: str | None = None
    sent_on_behalf_of_name: str | None = None
    unparsable_fields: tuple[UnparsableField, ...] = ()


@dataclass
class SummaryRecord:
    """CS01 summary record for claims with financial data."""

    line_number: int
    record_type: str = ""
    summary_record_id: str = ""
    invoice_reference: str | None = None
    rights_controller_name: str | None = None
    rights_controller_party_id: str | None = None
    distribution_channel: str | None = None
    distribution_channel_dpid: str | None = None
    start_of_claim_period: str | None = None
    end_of_claim_period: str | None = None
    commercial_model: str = ""
    use_type: str = ""
    territory: str = ""
    service_description: str | None = None
    currency_of_reporting: str | None = None
    currency_of_invoicing: str | None = None
    exchange_rate: Decimal | None = None
    exchange_rate_source: str | None = None
    start_date_of_currency_exchange: str | None = None
    end_date_of_currency_exchange: str | None = None
    rights_type_split_mechanical: Decimal = Decimal("0")
    rights_type_split_performing: Decimal = Decimal("0")
    total_market_share: Decimal | None = None
    total_claimed_amount: Decimal = Decimal("0")
    unparsable_fields: tuple[UnparsableField, ...] = ()


@dataclass
class DetailRecord:
    """CD01 detail record, one claim line."""

    line_number: int
    record_type: str = ""
    claim_id: str = ""
    summary_record_id: str = ""
    dsp_resource_id: str = ""
    resource_isrc: str | None = None
    resource_title: str | None = None
    resource_display_artist_name: str | None = None
    resource_display_artist_party_id: str | None = None
    licensor_work_id: str | None = None
    musical_work_iswc: str | None = None
    musical_work_title: str = ""
    alternative_musical_work_titles: list[str] = field(default_factory=list)
    composer_author_names: list[str] = field(default_factory=list)
    composer_author_party_ids: list[str] = field(default_factory=list)
    claim_basis: str = ""
    share_claimed_mechanical: Decimal = Decimal("0")
    share_claimed_performing: Decimal = Decimal("0")
    blended_share: Decimal = Decimal("0")
    sales_transaction_id: str | None = None
    usages: Decimal = Decimal("0")
    percentage_of_resource_in_release: Decimal | None = None
    revenue_in_currency_of_reporting: Decimal | None = None
    revenue_in_currency_of_invoicing: Decimal | None = None
    claimed_amount_mechanical: Decimal = Decimal("0")
    claimed_amount_performing: Decimal = Decimal("0")
    tariff_parameter_types: list[str] = field(default_factory=list)
    tariff_parameter_values: list[Decimal] = field(default_factory=list)
    claimed_amount: Decimal = Decimal("0")
    unparsable_fields: tuple[UnparsableField, ...] = ()


@dataclass(frozen=True)
class FooterRecord:
    """SRFO footer record declaring file-level checksums."""

    line_number: int
    record_type: str = ""
    number_of_lines_in_report: int = 0
    number_of_summary_records: int = 0
    unparsable_fields: tuple[UnparsableField, ...] = ()
