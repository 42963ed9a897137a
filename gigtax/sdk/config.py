"""Configuration management for gig-tax.

Configuration is split into two files:

1. settings.json - Machine-specific, ephemeral settings
   - tax_year: tax year to compute with (defaults to latest table)
   - profile: path to profile.yaml (optional, if not colocated)
   - default_output_format: "table" or "json"

2. profile.yaml - User's taxpayer configuration
   - tax_profile: filing status, state, county, residencies, deductions
   - business: structure (individual, llc_single_member, ...)
   - subscription: tier/status/plan used to resolve Free vs Pro

Config directory resolution:
1. GIGTAX_CONFIG_PATH environment variable (if set)
2. ~/.config/gig-tax/ (XDG_CONFIG_HOME fallback)

Profile resolution:
1. settings.json "profile" key (if set via CLI)
2. profile.yaml in same config directory
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, ValidationError

from .eligibility import (
    BUSINESS_STRUCTURES,
    BusinessStructure,
    BusinessStructureEligibility,
    Plan,
    can_select_business_structure,
    coerce_business_structure,
    resolve_eligibility,
    resolve_plan,
)
from .schemas import TaxProfile
from .taxes import TaxRules, load_tax_rules, resolve_tax_year, validate_tax_profile

logger = logging.getLogger(__name__)


APP_NAME = "gig-tax"
CONFIG_PATH_ENV = "GIGTAX_CONFIG_PATH"
SETTINGS_FILENAME = "settings.json"
PROFILE_FILENAME = "profile.yaml"

# Used only when a caller opts in (CLI --assume-default-profile)
DEFAULT_TAX_PROFILE = TaxProfile(
    filing_status="single",
    state="TX",
    deduction_method="standard",
    se_income=True,
)


class ConfigNotFoundError(Exception):
    """Raised when no configuration is found or it cannot be used."""
    pass


class ProfileNotFoundError(Exception):
    """Raised when no profile is found."""
    pass


def get_config_dir() -> Path:
    """Get the configuration directory path.

    Resolution order:
    1. GIGTAX_CONFIG_PATH environment variable
    2. ~/.config/gig-tax/ (XDG_CONFIG_HOME)

    Returns:
        Path to the configuration directory
    """
    env_path = os.environ.get(CONFIG_PATH_ENV)
    if env_path:
        return Path(env_path)

    xdg_config_home = os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config")
    return Path(xdg_config_home) / APP_NAME


def get_settings_path() -> Path:
    """Get the path to settings.json (may not exist yet)."""
    return get_config_dir() / SETTINGS_FILENAME


def load_settings() -> dict:
    """Load machine-specific settings from settings.json.

    Returns:
        Settings dictionary (empty dict if file doesn't exist)
    """
    settings_file = get_settings_path()

    if not settings_file.exists():
        return {}

    with open(settings_file, "r") as f:
        return json.load(f)


def save_settings(settings: dict) -> Path:
    """Save machine-specific settings to settings.json.

    Returns:
        Path to the saved settings file
    """
    config_dir = get_config_dir()
    config_dir.mkdir(parents=True, exist_ok=True)

    settings_file = config_dir / SETTINGS_FILENAME

    with open(settings_file, "w") as f:
        json.dump(settings, f, indent=2)

    return settings_file


def get_setting(key: str, default: Any = None) -> Any:
    """Get a setting value from settings.json."""
    settings = load_settings()
    return settings.get(key, default)


def set_setting(key: str, value: Any) -> Path:
    """Set a setting value in settings.json."""
    settings = load_settings()
    settings[key] = value
    return save_settings(settings)


def get_tax_year_setting(year: Optional[Union[str, int]] = None) -> str:
    """Resolve the tax year to compute with.

    Resolution order:
    1. Explicit year argument
    2. settings.json "tax_year"
    3. Latest available tax rules year

    A year with no table of its own falls back to the closest earlier table.
    """
    if year is None:
        year = get_setting("tax_year")
    return resolve_tax_year(year)


def get_profile_path(require_exists: bool = False) -> Path:
    """Get the path to the profile.yaml file.

    Resolution order:
    1. settings.json "profile" key (if set)
    2. profile.yaml in config directory

    Raises:
        ProfileNotFoundError: If require_exists=True and no profile found
    """
    config_dir = get_config_dir()

    settings = load_settings()
    custom_profile = settings.get("profile")
    if custom_profile:
        profile_path = Path(custom_profile)
        if require_exists and not profile_path.exists():
            raise ProfileNotFoundError(
                f"Profile not found at configured path: {profile_path}\n\n"
                f"Remove the 'profile' key from {get_settings_path()} or create the file."
            )
        return profile_path

    profile_path = config_dir / PROFILE_FILENAME
    if require_exists and not profile_path.exists():
        raise ProfileNotFoundError(
            f"No profile found. Checked:\n"
            f"  1. settings.json 'profile' key (not set)\n"
            f"  2. {profile_path} (not found)\n\n"
            f"Create one with: gig-tax profile set tax_profile.filing_status single\n"
            f"Or run with --assume-default-profile"
        )

    return profile_path


def load_profile(require_exists: bool = True) -> dict:
    """Load user profile from profile.yaml.

    Returns:
        Profile dictionary (empty dict if not required and not found)

    Raises:
        ProfileNotFoundError: If require_exists=True and no profile found
    """
    profile_path = get_profile_path(require_exists=require_exists)

    if not profile_path.exists():
        return {}

    with open(profile_path, "r") as f:
        return yaml.safe_load(f) or {}


def save_profile(profile: dict, path: Optional[Path] = None) -> Path:
    """Save user profile to profile.yaml.

    Returns:
        Path to the saved profile file
    """
    if path is None:
        path = get_profile_path(require_exists=False)

    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w") as f:
        yaml.dump(profile, f, default_flow_style=False, sort_keys=False)

    return path


def get_profile_value(key: str, default: Any = None) -> Any:
    """Get a profile value by dot-notation key (e.g., "tax_profile.state")."""
    profile = load_profile(require_exists=False)

    value = profile
    for part in key.split("."):
        if isinstance(value, dict) and part in value:
            value = value[part]
        else:
            return default

    return value


def set_profile_value(key: str, value: Any) -> Path:
    """Set a profile value by dot-notation key.

    Returns:
        Path to the saved profile file
    """
    profile = load_profile(require_exists=False)

    parts = key.split(".")
    current = profile

    for part in parts[:-1]:
        if not isinstance(current.get(part), dict):
            current[part] = {}
        current = current[part]

    current[parts[-1]] = value

    return save_profile(profile)


# =============================================================================
# Typed views of the profile
# =============================================================================


class BusinessContext(BaseModel):
    """Business structure and resolved plan from the profile."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    business_structure: BusinessStructure
    plan: Plan

    @property
    def eligibility(self) -> BusinessStructureEligibility:
        return resolve_eligibility(self.business_structure, self.plan)


def _parse_tax_profile(section: Any, source: Path) -> TaxProfile:
    try:
        return TaxProfile.model_validate(section)
    except ValidationError as e:
        raise ConfigNotFoundError(f"Invalid tax_profile in {source}:\n{e}") from e


def load_tax_profile(profile: Optional[dict] = None, assume_default: bool = False) -> TaxProfile:
    """Load the tax_profile section as a TaxProfile.

    Args:
        profile: Optional profile dict (loads from file if not provided)
        assume_default: Use DEFAULT_TAX_PROFILE when no profile or no
            tax_profile section exists instead of raising

    Raises:
        ProfileNotFoundError: If no profile exists and assume_default is False
        ConfigNotFoundError: If tax_profile is missing or invalid
    """
    if profile is None:
        try:
            profile = load_profile(require_exists=True)
        except ProfileNotFoundError:
            if not assume_default:
                raise
            logger.info("No profile found; using default tax profile")
            return DEFAULT_TAX_PROFILE

    section = profile.get("tax_profile")
    if not section:
        if assume_default:
            logger.info("Profile has no tax_profile section; using default tax profile")
            return DEFAULT_TAX_PROFILE
        raise ConfigNotFoundError(
            f"Profile has no tax_profile section.\n\n"
            f"Profile: {get_profile_path()}\n"
            f"Set one with: gig-tax profile set tax_profile.state TX"
        )

    return _parse_tax_profile(section, get_profile_path())


def _mapping_section(profile: dict, name: str) -> dict:
    section = profile.get(name)
    if section is None:
        return {}
    if not isinstance(section, dict):
        raise ConfigNotFoundError(
            f"Profile section '{name}' must be a mapping, got {type(section).__name__}"
        )
    return section


def load_business_context(profile: Optional[dict] = None) -> BusinessContext:
    """Resolve business structure and plan from the profile.

    Missing sections fall back to an individual on the Free plan.

    Raises:
        ConfigNotFoundError: If business or subscription is not a mapping
    """
    if profile is None:
        profile = load_profile(require_exists=False)

    business = _mapping_section(profile, "business")
    subscription = _mapping_section(profile, "subscription")

    return BusinessContext(
        business_structure=coerce_business_structure(business.get("structure")),
        plan=resolve_plan(
            subscription.get("tier"),
            subscription.get("status"),
            subscription.get("plan"),
        ),
    )


# =============================================================================
# Profile validation and health assessment
# =============================================================================

class ProfileValidationResult:
    """Result of profile validation with feature readiness status."""

    def __init__(
        self,
        location_type: str,
        location_path: Path,
        features: dict,
        profile: dict,
        errors: list = None,
        warnings: list = None,
    ):
        """
        Args:
            location_type: "central" or "custom"
            location_path: Path to the profile file
            features: Dict of feature_name -> dict with keys:
                      ready (bool), missing (list), message (str)
            profile: The loaded profile dict
            errors: List of validation errors (invalid values)
            warnings: List of validation warnings (suspicious but allowed)
        """
        self.location_type = location_type
        self.location_path = location_path
        self.features = features
        self.profile = profile
        self.errors = errors or []
        self.warnings = warnings or []

    @property
    def all_ready(self) -> bool:
        """True if all features are ready."""
        return all(f["ready"] for f in self.features.values())

    def is_ready(self, feature: str) -> bool:
        """Check if a specific feature is ready."""
        return self.features.get(feature, {}).get("ready", False)

    def require_feature(self, feature: str) -> None:
        """Raise exception if profile has errors or feature is not ready.

        Raises:
            ConfigNotFoundError: If profile has errors or feature is not ready
        """
        if self.errors:
            error_str = "\n  ! ".join(self.errors)
            raise ConfigNotFoundError(
                f"Profile has validation errors:\n\n"
                f"  ! {error_str}\n\n"
                f"Profile: {self.location_path}\n"
                f"Fix errors and retry, or use: gig-tax profile show"
            )

        if feature not in self.features:
            raise ConfigNotFoundError(f"Unknown feature: {feature}")

        status = self.features[feature]
        if not status["ready"]:
            missing_str = "\n  - ".join(status["missing"])
            raise ConfigNotFoundError(
                f"Profile not configured for '{feature}'.\n\n"
                f"Missing:\n  - {missing_str}\n\n"
                f"Profile: {self.location_path}\n"
                f"View with: gig-tax profile show"
            )


def validate_profile(profile: Optional[dict] = None, rules: Optional[TaxRules] = None) -> ProfileValidationResult:
    """Validate profile and check feature readiness.

    Args:
        profile: Optional profile dict (loads from file if not provided)
        rules: Tax rules to check jurisdictions against (defaults to the
            configured tax year)

    Raises:
        ProfileNotFoundError: If no profile exists
    """
    settings = load_settings()
    custom_profile_setting = settings.get("profile")
    if custom_profile_setting:
        location_type = "custom"
        location_path = Path(custom_profile_setting)
    else:
        location_type = "central"
        location_path = get_config_dir() / PROFILE_FILENAME

    if profile is None:
        profile = load_profile(require_exists=True)
    if rules is None:
        rules = load_tax_rules(get_tax_year_setting())

    errors = []
    warnings = []

    unknown_sections = sorted(set(profile) - set(PROFILE_SCHEMA))
    for section in unknown_sections:
        warnings.append(f"{section}: unknown section (ignored)")

    features = {
        "tax_estimate": _validate_tax_estimate(profile, rules, location_path, errors),
        "business": _validate_business(profile, errors, warnings),
    }

    return ProfileValidationResult(
        location_type=location_type,
        location_path=location_path,
        features=features,
        profile=profile,
        errors=errors,
        warnings=warnings,
    )


def _validate_tax_estimate(profile: dict, rules: TaxRules, source: Path, errors: list) -> dict:
    """Validate configuration for tax estimates and set-asides."""
    section = profile.get("tax_profile")
    if not section:
        return {
            "ready": False,
            "missing": [
                "tax_profile.filing_status (single, married_joint, married_separate, head)",
                "tax_profile.state (two-letter state code)",
            ],
            "message": "Tax estimates require a tax_profile section",
        }

    if not isinstance(section, dict):
        errors.append(f"tax_profile: must be a mapping, got {type(section).__name__}")
        return {
            "ready": False,
            "missing": [],
            "message": "tax_profile is invalid",
        }

    missing = [f"tax_profile.{key}" for key in REQUIRED_TAX_PROFILE_KEYS if key not in section]
    if missing:
        return {
            "ready": False,
            "missing": missing,
            "message": f"tax_profile incomplete ({len(missing)} issue(s))",
        }

    try:
        tax_profile = _parse_tax_profile(section, source)
    except ConfigNotFoundError as e:
        errors.append(str(e))
        return {
            "ready": False,
            "missing": [],
            "message": "tax_profile is invalid",
        }

    problems = validate_tax_profile(tax_profile, rules)
    if problems:
        return {
            "ready": False,
            "missing": [f"tax_profile.{p.field} ({p})" for p in problems],
            "message": f"tax_profile incomplete ({len(problems)} issue(s))",
        }

    return {
        "ready": True,
        "missing": [],
        "message": f"Ready ({tax_profile.filing_status}, {tax_profile.state}, {rules.year} tables)",
    }


def _validate_business(profile: dict, errors: list, warnings: list) -> dict:
    """Validate business structure against the resolved plan."""
    try:
        context = load_business_context(profile)
    except ConfigNotFoundError as e:
        errors.append(str(e))
        return {
            "ready": False,
            "missing": [],
            "message": "business or subscription section is invalid",
        }

    raw_structure = _mapping_section(profile, "business").get("structure")
    if raw_structure is not None and raw_structure not in BUSINESS_STRUCTURES:
        warnings.append(f"business.structure: unknown structure '{raw_structure}' (treated as individual)")

    if not can_select_business_structure(context.business_structure, context.plan):
        return {
            "ready": False,
            "missing": [f"subscription ({context.business_structure} requires the pro plan)"],
            "message": f"{context.business_structure} is not available on the {context.plan} plan",
        }

    se_label = "SE tax computed" if context.eligibility.uses_self_employment_tax else "SE tax not computed"
    return {
        "ready": True,
        "missing": [],
        "message": f"Ready ({context.business_structure}, {context.plan} plan, {se_label})",
    }


# =============================================================================
# Profile schema validation
# =============================================================================

# Valid sections, their keys, and the type a CLI string is coerced to
PROFILE_SCHEMA = {
    "tax_profile": {
        "filing_status": str,
        "state": str,
        "county": str,
        "local_residencies": list,  # comma-separated on the command line
        "deduction_method": str,
        "itemized_amount": float,
        "se_income": bool,
    },
    "business": {
        "structure": str,
    },
    "subscription": {
        "tier": str,
        "status": str,
        "plan": str,
    },
}

REQUIRED_TAX_PROFILE_KEYS = ("filing_status", "state")

_TRUE_VALUES = ("true", "yes", "1", "on")
_FALSE_VALUES = ("false", "no", "0", "off")


def validate_profile_key(key: str) -> tuple[bool, str]:
    """Validate that a dot-notation key is allowed by the schema.

    Returns:
        Tuple of (is_valid, error_message)
    """
    parts = key.split(".")
    top_level = parts[0]

    if top_level not in PROFILE_SCHEMA:
        valid_keys = ", ".join(PROFILE_SCHEMA.keys())
        return False, f"Unknown top-level key '{top_level}'. Valid keys: {valid_keys}"

    if len(parts) == 1:
        return False, f"Cannot set entire '{top_level}' section. Specify a sub-key."

    section = PROFILE_SCHEMA[top_level]
    if parts[1] not in section:
        valid_keys = ", ".join(section.keys())
        return False, f"Unknown key '{parts[1]}' under '{top_level}'. Valid keys: {valid_keys}"

    if len(parts) > 2:
        return False, f"Invalid key path: {key}"

    return True, ""


def coerce_profile_value(key: str, value: str) -> Any:
    """Convert a command-line string to the type the profile key holds.

    Raises:
        ValueError: If the string cannot be converted
    """
    top_level, name = key.split(".", 1)
    expected_type = PROFILE_SCHEMA[top_level][name]

    if expected_type is bool:
        lowered = value.strip().lower()
        if lowered in _TRUE_VALUES:
            return True
        if lowered in _FALSE_VALUES:
            return False
        raise ValueError(f"{key} must be true or false, got '{value}'")

    if expected_type is float:
        try:
            return float(value)
        except ValueError:
            raise ValueError(f"{key} must be a number, got '{value}'")

    if expected_type is list:
        return [item.strip() for item in value.split(",") if item.strip()]

    return value
