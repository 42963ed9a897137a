"""Tax rules loading.

Year-specific rules live in gigtax/tax-rules/{year}.yaml and are validated
against the schemas in taxes/schemas.py. Parsed rules are cached per process;
a table is read-only for the lifetime of the process unless the cache is
cleared explicitly.
"""

import logging
from functools import lru_cache
from pathlib import Path
from typing import Optional, Union

import yaml
from pydantic import ValidationError

from .schemas import TaxRules

logger = logging.getLogger(__name__)


class TaxRulesError(ValueError):
    """Raised when a tax rules file cannot be parsed or fails validation."""
    pass


def _get_tax_rules_dir() -> Path:
    """Get the tax-rules directory path."""
    package_root = Path(__file__).parent.parent.parent  # taxes -> sdk -> gigtax
    return package_root / "tax-rules"


def get_available_years() -> list[int]:
    """Get sorted list of available tax rule years (descending)."""
    rules_dir = _get_tax_rules_dir()
    years = [int(p.stem) for p in rules_dir.glob("*.yaml") if p.stem.isdigit()]
    return sorted(years, reverse=True)


def resolve_tax_year(year: Optional[Union[str, int]] = None) -> str:
    """Pick the rules year to use for a requested tax year.

    With no year, the latest available table is used. A year with no table of
    its own falls back to the closest earlier year.

    Raises:
        FileNotFoundError: If no table exists at or before the requested year
    """
    available = get_available_years()
    if not available:
        raise FileNotFoundError(f"No tax rules files found in {_get_tax_rules_dir()}")

    if year is None:
        return str(available[0])

    target = int(year)
    candidates = [y for y in available if y <= target]
    if not candidates:
        raise FileNotFoundError(
            f"No tax rules available for {target} or earlier (available: {', '.join(map(str, available))})"
        )
    if candidates[0] != target:
        logger.info(f"No tax rules for {target}; using {candidates[0]} tables")
    return str(candidates[0])


def parse_tax_rules(data: dict, source: str = "<dict>") -> TaxRules:
    """Validate a raw rules mapping into TaxRules.

    Raises:
        TaxRulesError: If the mapping does not match the schema or a bracket
            table violates its invariants
    """
    if not isinstance(data, dict):
        raise TaxRulesError(f"Tax rules in {source} must be a mapping, got {type(data).__name__}")
    try:
        return TaxRules.model_validate(data)
    except ValidationError as e:
        raise TaxRulesError(f"Invalid tax rules in {source}:\n{e}") from e


@lru_cache(maxsize=None)
def load_tax_rules(year: str) -> TaxRules:
    """Load tax rules for a specific year from tax-rules/YYYY.yaml (cached)."""
    config_file = _get_tax_rules_dir() / f"{year}.yaml"
    if not config_file.exists():
        raise FileNotFoundError(f"Tax rules file not found for year {year}: {config_file}")

    with open(config_file, "r") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise TaxRulesError(f"Cannot parse {config_file}: {e}") from e

    rules = parse_tax_rules(data, source=str(config_file))
    if str(rules.year) != str(year):
        raise TaxRulesError(f"{config_file} declares year {rules.year}, expected {year}")

    logger.debug(f"Loaded tax rules {year}: {len(rules.states)} states")
    return rules


def clear_tax_rules_cache() -> None:
    """Drop cached tables so the next load re-reads the YAML files."""
    load_tax_rules.cache_clear()


def get_default_rules() -> TaxRules:
    """Rules for the latest available tax year."""
    return load_tax_rules(resolve_tax_year())


def get_ss_wage_base(year: str) -> float:
    """Get Social Security wage base for a year."""
    return load_tax_rules(resolve_tax_year(year)).self_employment.social_security_wage_base
