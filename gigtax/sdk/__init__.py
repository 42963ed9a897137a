"""gig-tax SDK - Tax set-aside calculation for self-employment income."""

from .config import (
    get_config_dir,
    get_settings_path,
    load_settings,
    save_settings,
    get_setting,
    set_setting,
    get_tax_year_setting,
    get_profile_path,
    load_profile,
    save_profile,
    get_profile_value,
    set_profile_value,
    load_tax_profile,
    load_business_context,
    BusinessContext,
    DEFAULT_TAX_PROFILE,
    ConfigNotFoundError,
    ProfileNotFoundError,
    # Profile validation
    validate_profile,
    ProfileValidationResult,
    validate_profile_key,
    coerce_profile_value,
)

from .schemas import (
    FilingStatus,
    FILING_STATUSES,
    TaxProfile,
    YTDData,
    TransactionData,
    TaxBreakdown,
    StateLocalTax,
    TaxResult,
    MarginalResult,
    TransactionSummary,
)

from .eligibility import (
    BusinessStructure,
    BusinessStructureEligibility,
    BUSINESS_STRUCTURES,
    Plan,
    resolve_plan,
    resolve_eligibility,
    coerce_business_structure,
    can_select_business_structure,
)

from .taxes import (
    TaxRules,
    TaxRulesError,
    InvalidBracketTableError,
    UnknownJurisdictionError,
    ProfileIncompleteError,
    load_tax_rules,
    get_available_years,
    compute_bracket_tax,
    compute_se_tax,
    compute_state_and_local_tax,
    compute_federal_tax,
    compute_total_tax,
    compute_ytd_effective_rate,
    compute_marginal_tax,
    add_transaction,
    summarize_transaction,
    compute_mileage_deduction,
    validate_tax_profile,
    state_name,
    state_has_income_tax,
    state_needs_county,
    state_has_local_tax,
    list_counties,
    list_localities,
)

from .ytd import (
    LedgerEntry,
    LedgerError,
    load_ledger,
    summarize_ytd,
)

__all__ = [
    # Config
    "get_config_dir",
    "get_settings_path",
    "load_settings",
    "save_settings",
    "get_setting",
    "set_setting",
    "get_tax_year_setting",
    "get_profile_path",
    "load_profile",
    "save_profile",
    "get_profile_value",
    "set_profile_value",
    "load_tax_profile",
    "load_business_context",
    "BusinessContext",
    "DEFAULT_TAX_PROFILE",
    "ConfigNotFoundError",
    "ProfileNotFoundError",
    # Profile validation
    "validate_profile",
    "ProfileValidationResult",
    "validate_profile_key",
    "coerce_profile_value",
    # Schemas
    "FilingStatus",
    "FILING_STATUSES",
    "TaxProfile",
    "YTDData",
    "TransactionData",
    "TaxBreakdown",
    "StateLocalTax",
    "TaxResult",
    "MarginalResult",
    "TransactionSummary",
    # Eligibility
    "BusinessStructure",
    "BusinessStructureEligibility",
    "BUSINESS_STRUCTURES",
    "Plan",
    "resolve_plan",
    "resolve_eligibility",
    "coerce_business_structure",
    "can_select_business_structure",
    # Tax engine
    "TaxRules",
    "TaxRulesError",
    "InvalidBracketTableError",
    "UnknownJurisdictionError",
    "ProfileIncompleteError",
    "load_tax_rules",
    "get_available_years",
    "compute_bracket_tax",
    "compute_se_tax",
    "compute_state_and_local_tax",
    "compute_federal_tax",
    "compute_total_tax",
    "compute_ytd_effective_rate",
    "compute_marginal_tax",
    "add_transaction",
    "summarize_transaction",
    "compute_mileage_deduction",
    "validate_tax_profile",
    "state_name",
    "state_has_income_tax",
    "state_needs_county",
    "state_has_local_tax",
    "list_counties",
    "list_localities",
    # YTD ledger
    "LedgerEntry",
    "LedgerError",
    "load_ledger",
    "summarize_ytd",
]
