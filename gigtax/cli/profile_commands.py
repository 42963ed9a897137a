"""Profile CLI commands for gig-tax.

Manages user profile data (profile.yaml) - tax profile, business, subscription.
"""

import click
import yaml

from gigtax.sdk import (
    load_settings,
    get_profile_path,
    get_profile_value,
    set_profile_value,
    ProfileNotFoundError,
    TaxRulesError,
    validate_profile,
    validate_profile_key,
    coerce_profile_value,
)


def _display_validation(validation, show_contents=True, raise_on_errors=False):
    """Display validation results consistently across commands.

    Args:
        validation: ProfileValidationResult from validate_profile()
        show_contents: Whether to show full profile YAML
        raise_on_errors: If True, raise ClickException for validation errors

    Returns:
        True if valid (no errors), False if has errors
    """
    has_errors = bool(validation.errors)

    if validation.errors:
        click.echo()
        click.echo("Validation Errors (profile is invalid):")
        for error in validation.errors:
            click.echo(f"  ! {error}")
        click.echo()
        click.echo(f"Profile path: {validation.location_path}")

        if raise_on_errors:
            raise click.ClickException("Profile has validation errors. Fix them before continuing.")

    click.echo()
    click.echo("Feature Readiness:")
    for feature, status in validation.features.items():
        icon = "+" if status["ready"] else "-"
        click.echo(f"  {icon} {feature}: {status['message']}")

    all_missing = []
    for status in validation.features.values():
        all_missing.extend(status["missing"])

    if all_missing:
        click.echo()
        click.echo("Missing configuration:")
        for item in sorted(set(all_missing)):
            click.echo(f"  - {item}")

    if validation.warnings:
        click.echo()
        click.echo("Warnings:")
        for warning in validation.warnings:
            click.echo(f"  - {warning}")

    if show_contents:
        click.echo()
        click.echo("---")
        click.echo(yaml.dump(validation.profile, default_flow_style=False, sort_keys=False))

    return not has_errors


def _validate():
    try:
        return validate_profile()
    except (ProfileNotFoundError, TaxRulesError, FileNotFoundError) as e:
        raise click.ClickException(str(e))


# =============================================================================
# PROFILE commands - user profile data (profile.yaml)
# =============================================================================

@click.group()
def profile():
    """Manage your profile configuration (profile.yaml).

    \b
    Profile sections:
    - tax_profile: filing_status, state, county, local_residencies,
      deduction_method, itemized_amount, se_income
    - business: structure
    - subscription: tier, status, plan
    """
    pass


@profile.command("show")
def profile_show():
    """Show the active profile, its location, and feature readiness."""
    profile_path = get_profile_path(require_exists=False)

    if load_settings().get("profile"):
        location_label = "custom"
    elif profile_path.exists():
        location_label = "central (default)"
    else:
        location_label = "not created"

    click.echo(f"Profile: {profile_path}")
    click.echo(f"Location: {location_label}")

    if not profile_path.exists():
        click.echo()
        click.echo("Profile does not exist yet. Create with:")
        click.echo("  gig-tax profile set tax_profile.filing_status single")
        click.echo("  gig-tax profile set tax_profile.state TX")
        return

    _display_validation(_validate(), show_contents=True)


@profile.command("get")
@click.argument("key")
def profile_get(key):
    """Get a profile configuration value.

    KEY is a dot-notation path like 'tax_profile.state'
    """
    value = get_profile_value(key)
    if value is None:
        raise click.ClickException(f"Key '{key}' not found in profile")

    if isinstance(value, dict):
        raise click.ClickException(
            f"Key '{key}' is a complex value. Use 'gig-tax profile show' to view."
        )

    if isinstance(value, list):
        click.echo(",".join(str(v) for v in value))
        return

    click.echo(value)


@profile.command("set")
@click.argument("key")
@click.argument("value")
def profile_set(key, value):
    """Set a profile configuration value.

    KEY is a dot-notation path like 'tax_profile.state'
    VALUE is the value to set; lists are comma-separated

    \b
    Examples:
        gig-tax profile set tax_profile.filing_status married_joint
        gig-tax profile set tax_profile.state NY
        gig-tax profile set tax_profile.local_residencies nyc
        gig-tax profile set business.structure llc_single_member
    """
    is_valid, error_msg = validate_profile_key(key)
    if not is_valid:
        raise click.ClickException(error_msg)

    try:
        parsed_value = coerce_profile_value(key, value)
    except ValueError as e:
        raise click.ClickException(str(e))

    profile_file = set_profile_value(key, parsed_value)
    click.echo(f"Set {key} = {parsed_value}")
    click.echo(f"Saved to: {profile_file}")

    _display_validation(_validate(), show_contents=False)


@profile.command("validate")
def profile_validate():
    """Validate the profile; exits non-zero if it cannot be used."""
    validation = _validate()
    _display_validation(validation, show_contents=False, raise_on_errors=True)

    if not validation.is_ready("tax_estimate"):
        raise click.ClickException("Profile is not ready for tax estimates.")

    click.echo()
    click.echo("Profile is valid.")
