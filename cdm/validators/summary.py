"""Field validator for CS01 summary records.

Notes:
- The rights-type split must add up to 100 within `tolerances.split_sum`.
- Exchange-rate rules only fire when the currencies actually differ.
- Claimed totals are reconciled later by the aggregator, not here.
"""

from __future__ import annotations

from decimal import Decimal

from cdm.records.models import SUMMARY_LABEL, SUMMARY_TAGS, SummaryRecord
from cdm.rules.models import ValidationRules
from cdm.validation.models import Finding
from cdm.validators.helpers import (
    approximately_equal,
    escaping_findings,
    has_no_spaces_or_underscores,
    is_percentage,
    is_valid_date,
    is_valid_dpid,
    is_valid_party_id,
    is_valid_timestamp,
    make_finding,
    parse_date,
    unparsable_findings,
)

_HUNDRED = Decimal("100")


def validate_summary(record: SummaryRecord, rules: ValidationRules) -> list[Finding]:
    """Validate one summary record; all rules are evaluated."""

    findings: list[Finding] = []
    line = record.line_number

    def error(field_name: str, message: str) -> None:
        findings.append(make_finding(line, SUMMARY_LABEL, field_name, message))

    if record.record_type not in SUMMARY_TAGS:
        error(
            "RecordType",
            f"RecordType must be 'CS01.01' or 'CS01', found '{record.record_type}'",
        )

    if not record.summary_record_id.strip():
        error("SummaryRecordId", "SummaryRecordId is mandatory")

    controller_id = record.rights_controller_party_id
    if (
        controller_id is not None
        and not is_valid_party_id(controller_id)
        and not is_valid_dpid(controller_id)
    ):
        error(
            "RightsControllerPartyId",
            "RightsControllerPartyId must be in format NAMESPACE::VALUE or a DPID, "
            f"found '{controller_id}'",
        )

    if record.rights_controller_name is not None and controller_id is None:
        error(
            "RightsControllerPartyId",
            "RightsControllerPartyId is mandatory when RightsControllerName is present",
        )

    if record.distribution_channel_dpid is not None and not is_valid_dpid(
        record.distribution_channel_dpid
    ):
        error(
            "DistributionChannelDPID",
            "DistributionChannelDPID must be a valid DPID, "
            f"found '{record.distribution_channel_dpid}'",
        )

    for field_name, value in (
        ("StartOfClaimPeriod", record.start_of_claim_period),
        ("EndOfClaimPeriod", record.end_of_claim_period),
    ):
        if value is not None and not is_valid_date(value):
            error(field_name, f"{field_name} must be in ISO 8601 date format, found '{value}'")

    start = parse_date(record.start_of_claim_period)
    end = parse_date(record.end_of_claim_period)
    if start is not None and end is not None and start > end:
        error(
            "StartOfClaimPeriod/EndOfClaimPeriod",
            "StartOfClaimPeriod must be less than or equal to EndOfClaimPeriod",
        )

    for field_name, value_set, value in (
        ("CommercialModel", "commercial_models", record.commercial_model),
        ("UseType", "use_types", record.use_type),
        ("Territory", "territories", record.territory),
    ):
        if not rules.is_allowed(value_set, value):
            error(
                field_name,
                f"{field_name} must be one of: {rules.display_values(value_set)}. "
                f"Found '{value}'",
            )

    if record.service_description is not None and not has_no_spaces_or_underscores(
        record.service_description
    ):
        findings.append(
            make_finding(
                line,
                SUMMARY_LABEL,
                "ServiceDescription",
                "ServiceDescription should not contain space characters or underscores",
                severity="warning",
            )
        )

    findings.extend(_currency_findings(record, rules))

    for field_name, value in (
        ("RightsTypeSplitMechanical", record.rights_type_split_mechanical),
        ("RightsTypeSplitPerforming", record.rights_type_split_performing),
    ):
        if not is_percentage(value):
            error(field_name, f"{field_name} must be between 0 and 100, found {value}")

    split_sum = record.rights_type_split_mechanical + record.rights_type_split_performing
    if not approximately_equal(split_sum, _HUNDRED, rules.tolerances.split_sum):
        error(
            "RightsTypeSplitMechanical/RightsTypeSplitPerforming",
            "RightsTypeSplitMechanical + RightsTypeSplitPerforming must equal 100, "
            f"found {split_sum}",
        )

    if record.total_market_share is not None and not is_percentage(record.total_market_share):
        error(
            "TotalMarketShare",
            f"TotalMarketShare must be between 0 and 100, found {record.total_market_share}",
        )

    findings.extend(
        escaping_findings(
            line,
            SUMMARY_LABEL,
            {
                "SummaryRecordId": record.summary_record_id,
                "InvoiceReference": record.invoice_reference,
                "RightsControllerName": record.rights_controller_name,
                "RightsControllerPartyId": record.rights_controller_party_id,
                "DistributionChannel": record.distribution_channel,
                "DistributionChannelDPID": record.distribution_channel_dpid,
                "CommercialModel": record.commercial_model,
                "UseType": record.use_type,
                "Territory": record.territory,
                "ServiceDescription": record.service_description,
                "CurrencyOfReporting": record.currency_of_reporting,
                "CurrencyOfInvoicing": record.currency_of_invoicing,
                "ExchangeRateSource": record.exchange_rate_source,
            },
        )
    )

    if rules.report_unparsable_numbers:
        findings.extend(unparsable_findings(line, SUMMARY_LABEL, record.unparsable_fields))

    return findings


def _currency_findings(record: SummaryRecord, rules: ValidationRules) -> list[Finding]:
    findings: list[Finding] = []
    line = record.line_number

    def error(field_name: str, message: str) -> None:
        findings.append(make_finding(line, SUMMARY_LABEL, field_name, message))

    for field_name, value in (
        ("CurrencyOfReporting", record.currency_of_reporting),
        ("CurrencyOfInvoicing", record.currency_of_invoicing),
    ):
        if value is not None and not rules.is_allowed("currencies", value):
            error(field_name, f"{field_name} must be a valid ISO 4217 currency code. Found '{value}'")

    reporting = record.currency_of_reporting
    invoicing = record.currency_of_invoicing
    if (
        reporting is not None
        and invoicing is not None
        and reporting.strip().upper() != invoicing.strip().upper()
        and record.exchange_rate is None
    ):
        error(
            "ExchangeRate",
            "ExchangeRate is mandatory when CurrencyOfReporting differs from CurrencyOfInvoicing",
        )

    if record.exchange_rate is not None:
        if record.exchange_rate_source is None:
            error("ExchangeRateSource", "ExchangeRateSource is mandatory when ExchangeRate is present")
        if record.start_date_of_currency_exchange is None:
            error(
                "StartDateOfCurrencyExchange",
                "StartDateOfCurrencyExchange is mandatory when ExchangeRate is present",
            )

    if (
        record.start_date_of_currency_exchange is not None
        and record.end_date_of_currency_exchange is None
    ):
        error(
            "EndDateOfCurrencyExchange",
            "EndDateOfCurrencyExchange is mandatory when StartDateOfCurrencyExchange is present",
        )

    for field_name, value in (
        ("StartDateOfCurrencyExchange", record.start_date_of_currency_exchange),
        ("EndDateOfCurrencyExchange", record.end_date_of_currency_exchange),
    ):
        if value is not None and not (is_valid_timestamp(value) or is_valid_date(value)):
            error(
                field_name,
                f"{field_name} must be in ISO 8601 datetime or date format, found '{value}'",
            )

    return findings
