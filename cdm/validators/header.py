"""Field validator for CDMH header records."""

from __future__ import annotations

from cdm.records.models import HEADER_LABEL, HEADER_TAGS, HeaderRecord
from cdm.rules.models import ValidationRules
from cdm.validation.models import Finding
from cdm.validators.helpers import (
    escaping_findings,
    has_no_spaces_or_underscores,
    is_valid_date,
    is_valid_dpid,
    is_valid_message_version,
    is_valid_timestamp,
    make_finding,
    parse_date,
    unparsable_findings,
)


def validate_header(record: HeaderRecord, rules: ValidationRules) -> list[Finding]:
    """Validate one header record; all rules are evaluated."""

    findings: list[Finding] = []
    line = record.line_number

    def error(field_name: str, message: str) -> None:
        findings.append(make_finding(line, HEADER_LABEL, field_name, message))

    if record.record_type not in HEADER_TAGS:
        error(
            "RecordType",
            f"RecordType must be 'CDMH.01' or 'CDMH', found '{record.record_type}'",
        )

    if not is_valid_message_version(record.message_version):
        error(
            "MessageVersion",
            "MessageVersion must be in format 'CDM/x.x/x.x/x.x', "
            f"found '{record.message_version}'",
        )

    if not record.message_id.strip():
        error("MessageId", "MessageId is mandatory")

    if not is_valid_timestamp(record.message_created_datetime):
        error(
            "MessageCreatedDateTime",
            "MessageCreatedDateTime must be in RFC 3339 format, "
            f"found '{record.message_created_datetime}'",
        )

    if not rules.is_allowed("profiles", record.profile):
        error(
            "Profile",
            f"Profile must be one of: {rules.display_values('profiles')}. "
            f"Found '{record.profile}'",
        )

    if not record.profile_version.strip():
        error("ProfileVersion", "ProfileVersion is mandatory")

    for field_name, value in (
        ("UsageStartDate", record.usage_start_date),
        ("UsageEndDate", record.usage_end_date),
    ):
        if value is not None and not is_valid_date(value):
            error(field_name, f"{field_name} must be in ISO 8601 date format, found '{value}'")

    start = parse_date(record.usage_start_date)
    end = parse_date(record.usage_end_date)
    if start is not None and end is not None and start > end:
        error(
            "UsageStartDate/UsageEndDate",
            "UsageStartDate must be less than or equal to UsageEndDate",
        )

    if not record.sender_party_id.strip():
        error("SenderPartyId", "SenderPartyId is mandatory")
    elif not is_valid_dpid(record.sender_party_id):
        error(
            "SenderPartyId",
            f"SenderPartyId must be a valid DPID, found '{record.sender_party_id}'",
        )

    if not record.sender_name.strip():
        error("SenderName", "SenderName is mandatory")

    if record.service_description is not None and not has_no_spaces_or_underscores(
        record.service_description
    ):
        findings.append(
            make_finding(
                line,
                HEADER_LABEL,
                "ServiceDescription",
                "ServiceDescription should not contain space characters or underscores",
                severity="warning",
            )
        )

    for field_name, value in (
        ("RecipientPartyId", record.recipient_party_id),
        ("SentOnBehalfOfPartyId", record.sent_on_behalf_of_party_id),
    ):
        if value is not None and not is_valid_dpid(value):
            error(field_name, f"{field_name} must be a valid DPID, found '{value}'")

    if record.sent_on_behalf_of_party_id is not None and record.sent_on_behalf_of_name is None:
        error(
            "SentOnBehalfOfName",
            "SentOnBehalfOfName is mandatory when SentOnBehalfOfPartyId is present",
        )

    findings.extend(
        escaping_findings(
            line,
            HEADER_LABEL,
            {
                "MessageVersion": record.message_version,
                "MessageId": record.message_id,
                "Profile": record.profile,
                "ProfileVersion": record.profile_version,
                "RelatedCdmMessageId": record.related_message_id,
                "SalesReportId": record.sales_report_id,
                "SenderPartyId": record.sender_party_id,
                "SenderName": record.sender_name,
                "ServiceDescription": record.service_description,
                "RecipientPartyId": record.recipient_party_id,
                "RecipientName": record.recipient_name,
                "SentOnBehalfOfPartyId": record.sent_on_behalf_of_party_id,
                "SentOnBehalfOfName": record.sent_on_behalf_of_name,
            },
        )
    )

    if rules.report_unparsable_numbers:
        findings.extend(unparsable_findings(line, HEADER_LABEL, record.unparsable_fields))

    return findings
