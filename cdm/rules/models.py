"""Validation rules model loaded from YAML."""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class AllowedValues(BaseModel):
    """Extensible allowed-value sets, matched case-insensitively."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    profiles: frozenset[str]
    commercial_models: frozenset[str]
    use_types: frozenset[str]
    claim_basis: frozenset[str]
    currencies: frozenset[str]
    territories: frozenset[str]

    @field_validator("*", mode="after")
    @classmethod
    def _normalize_case(cls, value: frozenset[str]) -> frozenset[str]:
        return frozenset(item.strip().upper() for item in value if item.strip())


class Tolerances(BaseModel):
    """Absolute tolerances for amount and share comparisons."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    split_sum: Decimal = Field(default=Decimal("0.01"), ge=0)
    claimed_amount: Decimal = Field(default=Decimal("0.01"), ge=0)
    blended_share: Decimal = Field(default=Decimal("0.01"), ge=0)
    summary_total: Decimal = Field(default=Decimal("0.02"), ge=0)


class ValidationRules(BaseModel):
    """Rules driving field validation and run behaviour."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    allowed_values: AllowedValues
    tolerances: Tolerances = Field(default_factory=Tolerances)
    progress_interval: int = Field(default=1000, gt=0)
    report_unparsable_numbers: bool = True

    def is_allowed(self, value_set: str, value: str | None) -> bool:
        if value is None or not value.strip():
            return False
        allowed: frozenset[str] = getattr(self.allowed_values, value_set)
        return value.strip().upper() in allowed

    def display_values(self, value_set: str) -> str:
        allowed: frozenset[str] = getattr(self.allowed_values, value_set)
        return ", ".join(sorted(allowed))
