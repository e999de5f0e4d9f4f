"""Rules loading utilities for claim-file validation."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

import yaml  # type: ignore[import-untyped]
from pydantic import ValidationError

from cdm.rules.models import ValidationRules
from cdm.utils.errors import RulesError

_DEFAULT_RULES_PATH = Path(__file__).with_name("rules.yaml")


def load_rules(path: Path | None = None) -> ValidationRules:
    """Load and validate validation rules from YAML."""

    if path is None:
        return _load_default_rules()
    return _load_rules_file(path)


@lru_cache(maxsize=1)
def _load_default_rules() -> ValidationRules:
    return _load_rules_file(_DEFAULT_RULES_PATH)


def _load_rules_file(rules_path: Path) -> ValidationRules:
    try:
        raw = yaml.safe_load(rules_path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise RulesError(f"Rules file not found: {rules_path}", path=rules_path) from exc
    except yaml.YAMLError as exc:
        raise RulesError(f"Invalid YAML in rules file: {rules_path}", path=rules_path) from exc
    except (UnicodeDecodeError, OSError) as exc:
        raise RulesError(f"Cannot read rules file: {rules_path}", path=rules_path) from exc

    if not isinstance(raw, dict):
        raise RulesError(f"Rules file must contain a mapping: {rules_path}", path=rules_path)

    normalized = _normalize_tolerances(raw)

    try:
        return ValidationRules.model_validate(normalized)
    except ValidationError as exc:
        raise RulesError(f"Invalid rules schema: {rules_path}", path=rules_path) from exc


def _normalize_tolerances(raw: dict[object, object]) -> dict[object, object]:
    # YAML reads 0.01 as a float; go through str so Decimal keeps the written digits.
    normalized = dict(raw)
    tolerances = normalized.get("tolerances")
    if isinstance(tolerances, dict):
        normalized["tolerances"] = {
            key: str(value) if isinstance(value, float) else value
            for key, value in tolerances.items()
        }
    return normalized
