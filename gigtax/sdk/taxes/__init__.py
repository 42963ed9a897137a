"""taxes - Tax tables and the set-aside calculation engine.

Scope:
- Year-specific rules loaded from gigtax/tax-rules/{year}.yaml
- Progressive bracket tax (federal, state, local sub-brackets)
- Self-employment tax with wage base and Additional Medicare
- State/local overlays (surtax, resident brackets, surcharge, county rate)
- Total tax and marginal set-aside for a new transaction

Constraints:
- Pure calculation - no profile files or ledgers (that's config/ and ytd/)
- Receives values, returns new values; nothing is mutated

Usage:
    from gigtax.sdk.taxes import compute_marginal_tax, load_tax_rules

    rules = load_tax_rules("2025")
    result = compute_marginal_tax(ytd, transaction, profile, rules)
"""

# Tax rules schemas
from .schemas import (
    TaxRules,
    TaxBracket,
    JurisdictionConfig,
    SelfEmploymentRules,
    SurtaxAboveThreshold,
    ResidentSubBrackets,
    PercentageSurcharge,
    FlatRegionalRate,
    InvalidBracketTableError,
    check_bracket_table,
)

# Tax rules loading
from .rules import (
    load_tax_rules,
    parse_tax_rules,
    resolve_tax_year,
    get_available_years,
    get_default_rules,
    get_ss_wage_base,
    clear_tax_rules_cache,
    TaxRulesError,
)

# Calculators
from .brackets import compute_bracket_tax, compute_taxable_income, get_deduction
from .self_employment import compute_se_tax, calc_se_components
from .jurisdictions import (
    compute_state_and_local_tax,
    get_jurisdiction,
    state_name,
    state_has_income_tax,
    state_needs_county,
    state_has_local_tax,
    list_counties,
    list_localities,
    UnknownJurisdictionError,
)
from .engine import (
    compute_federal_tax,
    compute_total_tax,
    compute_ytd_effective_rate,
    compute_marginal_tax,
    add_transaction,
    summarize_transaction,
    compute_mileage_deduction,
    validate_tax_profile,
    require_complete_profile,
    ProfileIncompleteError,
)

__all__ = [
    # Schemas
    "TaxRules",
    "TaxBracket",
    "JurisdictionConfig",
    "SelfEmploymentRules",
    "SurtaxAboveThreshold",
    "ResidentSubBrackets",
    "PercentageSurcharge",
    "FlatRegionalRate",
    "InvalidBracketTableError",
    "check_bracket_table",
    # Rules
    "load_tax_rules",
    "parse_tax_rules",
    "resolve_tax_year",
    "get_available_years",
    "get_default_rules",
    "get_ss_wage_base",
    "clear_tax_rules_cache",
    "TaxRulesError",
    # Calculators
    "compute_bracket_tax",
    "compute_taxable_income",
    "get_deduction",
    "compute_se_tax",
    "calc_se_components",
    "compute_state_and_local_tax",
    "get_jurisdiction",
    "state_name",
    "state_has_income_tax",
    "state_needs_county",
    "state_has_local_tax",
    "list_counties",
    "list_localities",
    "UnknownJurisdictionError",
    # Engine
    "compute_federal_tax",
    "compute_total_tax",
    "compute_ytd_effective_rate",
    "compute_marginal_tax",
    "add_transaction",
    "summarize_transaction",
    "compute_mileage_deduction",
    "validate_tax_profile",
    "require_complete_profile",
    "ProfileIncompleteError",
]
