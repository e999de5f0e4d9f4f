"""Field validator for CD01 detail records.

Referential integrity and blended-share consistency need the summary index and
are checked in the second pass (`cdm.index.cross_record`).
"""

from __future__ import annotations

from cdm.records.models import DETAIL_LABEL, DETAIL_TAGS, LIST_DELIMITER, DetailRecord
from cdm.rules.models import ValidationRules
from cdm.validation.models import Finding
from cdm.validators.helpers import (
    approximately_equal,
    escaping_findings,
    is_percentage,
    is_valid_isrc,
    is_valid_iswc,
    is_valid_party_id,
    make_finding,
    unparsable_findings,
)

_UNMATCHED_CLAIM_BASIS = "UNMATCHED"


def validate_detail(record: DetailRecord, rules: ValidationRules) -> list[Finding]:
    """Validate one detail record; all rules are evaluated."""

    findings: list[Finding] = []
    line = record.line_number

    def error(field_name: str, message: str) -> None:
        findings.append(make_finding(line, DETAIL_LABEL, field_name, message))

    if record.record_type not in DETAIL_TAGS:
        error(
            "RecordType",
            f"RecordType must be 'CD01.01' or 'CD01', found '{record.record_type}'",
        )

    for field_name, value in (
        ("ClaimId", record.claim_id),
        ("SummaryRecordId", record.summary_record_id),
        ("DspResourceId", record.dsp_resource_id),
        ("MusicalWorkTitle", record.musical_work_title),
    ):
        if not value.strip():
            error(field_name, f"{field_name} is mandatory")

    if record.resource_isrc is not None and not is_valid_isrc(record.resource_isrc):
        error(
            "ResourceISRC",
            f"ResourceISRC must be in valid ISRC format, found '{record.resource_isrc}'",
        )

    artist_id = record.resource_display_artist_party_id
    if artist_id is not None and not is_valid_party_id(artist_id):
        error(
            "ResourceDisplayArtistPartyId",
            "ResourceDisplayArtistPartyId must be in format NAMESPACE::VALUE, "
            f"found '{artist_id}'",
        )

    if record.musical_work_iswc is not None and not is_valid_iswc(record.musical_work_iswc):
        error(
            "MusicalWorkISWC",
            "MusicalWorkISWC must be in valid ISWC format (T + 10 digits), "
            f"found '{record.musical_work_iswc}'",
        )

    names = record.composer_author_names
    party_ids = record.composer_author_party_ids
    if party_ids and len(names) != len(party_ids):
        findings.append(
            make_finding(
                line,
                DETAIL_LABEL,
                "MusicalWorkComposerAuthorName/PartyId",
                f"Number of composer/author names ({len(names)}) should match "
                f"number of party IDs ({len(party_ids)})",
                severity="warning",
            )
        )

    for party_id in party_ids:
        if not is_valid_party_id(party_id):
            error(
                "MusicalWorkComposerAuthorPartyId",
                "MusicalWorkComposerAuthorPartyId must be in format NAMESPACE::VALUE, "
                f"found '{party_id}'",
            )

    if not rules.is_allowed("claim_basis", record.claim_basis):
        error(
            "ClaimBasis",
            f"ClaimBasis must be one of: {rules.display_values('claim_basis')}. "
            f"Found '{record.claim_basis}'",
        )

    if (
        record.claim_basis.strip().upper() == _UNMATCHED_CLAIM_BASIS
        and record.licensor_work_id is not None
    ):
        error("LicensorWorkId", "LicensorWorkId must be empty when ClaimBasis is 'Unmatched'")

    for field_name, value in (
        ("ShareClaimedMechanical", record.share_claimed_mechanical),
        ("ShareClaimedPerforming", record.share_claimed_performing),
        ("BlendedShareClaimedForMechAndPerf", record.blended_share),
        ("PercentageOfResourceInRelease", record.percentage_of_resource_in_release),
    ):
        if value is not None and not is_percentage(value):
            error(field_name, f"{field_name} must be between 0 and 100, found {value}")

    expected = record.claimed_amount_mechanical + record.claimed_amount_performing
    if not approximately_equal(record.claimed_amount, expected, rules.tolerances.claimed_amount):
        error(
            "ClaimedAmount",
            f"ClaimedAmount ({record.claimed_amount}) should equal "
            f"ClaimedAmountMechanical ({record.claimed_amount_mechanical}) + "
            f"ClaimedAmountPerforming ({record.claimed_amount_performing}) = {expected}",
        )

    types = record.tariff_parameter_types
    # Unparsable values are dropped from the list but still count as tokens.
    value_count = len(record.tariff_parameter_values) + sum(
        1 for item in record.unparsable_fields if item.field_name == "TariffParameterValue"
    )
    if value_count and len(types) != value_count:
        error(
            "TariffParameterType/Value",
            f"Number of TariffParameterTypes ({len(types)}) should match "
            f"number of TariffParameterValues ({value_count})",
        )
    if types and not value_count:
        error(
            "TariffParameterValue",
            "TariffParameterValue is mandatory when TariffParameterType is present",
        )

    alternative_titles = LIST_DELIMITER.join(record.alternative_musical_work_titles)
    findings.extend(
        escaping_findings(
            line,
            DETAIL_LABEL,
            {
                "ClaimId": record.claim_id,
                "SummaryRecordId": record.summary_record_id,
                "DspResourceId": record.dsp_resource_id,
                "ResourceTitle": record.resource_title,
                "ResourceDisplayArtistName": record.resource_display_artist_name,
                "LicensorWorkId": record.licensor_work_id,
                "MusicalWorkTitle": record.musical_work_title,
                "AlternativeMusicalWorkTitle": alternative_titles,
                "MusicalWorkComposerAuthorName": LIST_DELIMITER.join(names),
                "SalesTransactionId": record.sales_transaction_id,
            },
        )
    )

    if rules.report_unparsable_numbers:
        findings.extend(unparsable_findings(line, DETAIL_LABEL, record.unparsable_fields))

    return findings
