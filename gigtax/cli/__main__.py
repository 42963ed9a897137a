"""gig-tax CLI - Set-aside estimates for self-employment income."""

import json
import logging
import os

import click
from rich.console import Console

from gigtax import __version__
from gigtax.sdk import (
    BusinessContext,
    ConfigNotFoundError,
    FILING_STATUSES,
    LedgerError,
    ProfileIncompleteError,
    ProfileNotFoundError,
    TaxProfile,
    TaxRules,
    TaxRulesError,
    TransactionData,
    UnknownJurisdictionError,
    YTDData,
    can_select_business_structure,
    compute_marginal_tax,
    compute_mileage_deduction,
    compute_total_tax,
    get_setting,
    get_tax_year_setting,
    load_business_context,
    load_ledger,
    load_tax_profile,
    load_tax_rules,
    summarize_transaction,
    summarize_ytd,
)
from gigtax.sdk.taxes import get_jurisdiction

from .profile_commands import profile as profile_group
from .renderers.tax_renderer import (
    render_brackets,
    render_eligibility,
    render_marginal_result,
    render_states,
    render_tax_result,
)
from .settings_commands import settings as settings_group

# Configure logging based on LOG_LEVEL environment variable
_log_level = os.environ.get("LOG_LEVEL", "WARNING").upper()
logging.basicConfig(
    level=getattr(logging, _log_level, logging.WARNING),
    format="%(asctime)s.%(msecs)03d %(levelname)s: %(message)s",
    datefmt="%H:%M:%S"
)
logger = logging.getLogger(__name__)

OUTPUT_FORMATS = ("table", "json")


@click.group()
@click.version_option(version=__version__, prog_name="gig-tax")
def cli():
    """gig-tax - How much of each gig payment to set aside for taxes.

    Computes federal, state, local, and self-employment tax on
    year-to-date income, and the marginal set-aside for a new payment.

    Configuration is loaded from (in order):

    \b
    1. GIGTAX_CONFIG_PATH environment variable
    2. settings.json 'profile' key
    3. ~/.config/gig-tax/profile.yaml (XDG default)

    Run 'gig-tax profile show' to see profile status and readiness.
    """
    pass


cli.add_command(profile_group)
cli.add_command(settings_group)


# =============================================================================
# Shared option handling
# =============================================================================

def _ytd_options(func):
    """YTD income options shared by estimate and set-aside."""
    options = [
        click.option("--gross", type=click.FloatRange(min=0), default=0.0,
                     help="YTD gross income"),
        click.option("--adjustments", type=click.FloatRange(min=0), default=0.0,
                     help="YTD above-the-line adjustments"),
        click.option("--net-se", type=float, default=None,
                     help="YTD net self-employment income (default: same as --gross)"),
        click.option("--ledger", type=click.Path(exists=True, dir_okay=False),
                     help="Sum YTD totals from a YAML/JSON ledger instead"),
        click.option("--year", help="Tax year (default: settings tax_year, else latest)"),
        click.option("--assume-default-profile", is_flag=True,
                     help="Use single/TX/standard deduction if no profile exists"),
        click.option("--format", "output_format", type=click.Choice(OUTPUT_FORMATS), default=None,
                     help="Output format (default: settings default_output_format, else table)"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _resolve_format(output_format):
    if output_format:
        return output_format
    configured = get_setting("default_output_format", "table")
    return configured if configured in OUTPUT_FORMATS else "table"


def _load_rules(year) -> TaxRules:
    try:
        return load_tax_rules(get_tax_year_setting(year))
    except (FileNotFoundError, TaxRulesError, ValueError) as e:
        raise click.ClickException(str(e))


def _load_profile(assume_default: bool) -> TaxProfile:
    try:
        return load_tax_profile(assume_default=assume_default)
    except (ProfileNotFoundError, ConfigNotFoundError) as e:
        raise click.ClickException(str(e))


def _load_business_context() -> BusinessContext:
    try:
        return load_business_context()
    except ConfigNotFoundError as e:
        raise click.ClickException(str(e))


def _apply_eligibility(profile: TaxProfile, context: BusinessContext) -> TaxProfile:
    if profile.se_income and not context.eligibility.uses_self_employment_tax:
        logger.info(f"SE tax not computed for business structure {context.business_structure}")
        return profile.model_copy(update={"se_income": False})
    return profile


def _build_ytd(gross, adjustments, net_se, ledger, rules: TaxRules) -> YTDData:
    if ledger:
        try:
            entries = load_ledger(ledger)
        except (FileNotFoundError, LedgerError) as e:
            raise click.ClickException(str(e))
        return summarize_ytd(entries, year=rules.year, adjustments=adjustments)

    return YTDData(
        gross_income=gross,
        adjustments=adjustments,
        net_se=gross if net_se is None else net_se,
    )


def _echo_json(data) -> None:
    click.echo(json.dumps(data, indent=2))


# =============================================================================
# Calculation commands
# =============================================================================

@cli.command("estimate")
@_ytd_options
def estimate(gross, adjustments, net_se, ledger, year, assume_default_profile, output_format):
    """Estimate total tax owed on year-to-date income.

    \b
    Examples:
      gig-tax estimate --gross 42000
      gig-tax estimate --gross 60000 --net-se 48000 --format json
      gig-tax estimate --ledger ~/gigs/2025.yaml
    """
    output_format = _resolve_format(output_format)
    rules = _load_rules(year)
    context = _load_business_context()
    profile = _apply_eligibility(_load_profile(assume_default_profile), context)
    ytd = _build_ytd(gross, adjustments, net_se, ledger, rules)

    try:
        result = compute_total_tax(ytd, profile, rules)
    except (ProfileIncompleteError, UnknownJurisdictionError) as e:
        raise click.ClickException(str(e))

    if output_format == "json":
        _echo_json({
            "tax_year": rules.year,
            "ytd": ytd.model_dump(),
            **result.model_dump(),
        })
        return

    render_tax_result(Console(), result, ytd, profile, str(rules.year))


@cli.command("set-aside")
@click.argument("amount", type=click.FloatRange(min=0))
@click.option("--expenses", type=click.FloatRange(min=0), default=0.0,
              help="Expenses tied to this payment (mileage, supplies)")
@click.option("--miles", type=click.FloatRange(min=0), default=0.0,
              help="Business miles driven for this payment (added to expenses at the IRS rate)")
@_ytd_options
def set_aside(amount, expenses, miles, gross, adjustments, net_se, ledger, year, assume_default_profile, output_format):
    """Compute how much of a new payment to set aside for taxes.

    AMOUNT is the gross amount of the new payment. YTD options describe
    income received before it.

    \b
    Examples:
      gig-tax set-aside 1000
      gig-tax set-aside 850 --expenses 120 --gross 42000
      gig-tax set-aside 300 --miles 42
      gig-tax set-aside 500 --ledger ~/gigs/2025.yaml --format json
    """
    output_format = _resolve_format(output_format)
    rules = _load_rules(year)
    context = _load_business_context()
    profile = _load_profile(assume_default_profile)
    ytd = _build_ytd(gross, adjustments, net_se, ledger, rules)
    if miles:
        try:
            expenses += compute_mileage_deduction(miles, rules)
        except TaxRulesError as e:
            raise click.ClickException(str(e))
    transaction = TransactionData(gross=amount, expenses=expenses)

    try:
        result = compute_marginal_tax(ytd, transaction, profile, rules, eligibility=context.eligibility)
    except (ProfileIncompleteError, UnknownJurisdictionError) as e:
        raise click.ClickException(str(e))
    summary = summarize_transaction(transaction, result)

    if output_format == "json":
        _echo_json({
            "tax_year": rules.year,
            **summary.model_dump(),
            "business_structure": context.business_structure,
            **result.model_dump(),
        })
        return

    render_marginal_result(Console(), result, summary, profile, str(rules.year), context)


# =============================================================================
# Reference commands
# =============================================================================

@cli.command("states")
@click.option("--year", help="Tax year (default: settings tax_year, else latest)")
@click.option("--format", "output_format", type=click.Choice(OUTPUT_FORMATS), default=None,
              help="Output format")
def states(year, output_format):
    """List supported states and their local tax requirements."""
    output_format = _resolve_format(output_format)
    rules = _load_rules(year)

    rows = []
    for code in sorted(rules.states):
        jurisdiction = rules.states[code]
        rows.append({
            "code": code,
            "name": jurisdiction.name,
            "income_tax": jurisdiction.has_income_tax,
            "requires_county": jurisdiction.requires_county,
            "localities": jurisdiction.localities,
        })

    if output_format == "json":
        _echo_json(rows)
        return

    render_states(Console(), rows)


@cli.command("brackets")
@click.argument("jurisdiction")
@click.option("--filing-status", "-s", type=click.Choice(FILING_STATUSES), default="single",
              help="Filing status (default: single)")
@click.option("--locality", help="Show a locality's resident brackets instead (e.g. nyc)")
@click.option("--year", help="Tax year (default: settings tax_year, else latest)")
@click.option("--format", "output_format", type=click.Choice(OUTPUT_FORMATS), default=None,
              help="Output format")
def brackets(jurisdiction, filing_status, locality, year, output_format):
    """Show the bracket table for 'federal' or a state code.

    \b
    Examples:
      gig-tax brackets federal
      gig-tax brackets CA --filing-status married_joint
      gig-tax brackets NY --locality nyc
    """
    output_format = _resolve_format(output_format)
    rules = _load_rules(year)

    if jurisdiction.lower() == "federal":
        config = rules.federal
    else:
        try:
            config = get_jurisdiction(rules, jurisdiction)
        except UnknownJurisdictionError as e:
            raise click.ClickException(str(e))

    table = config.brackets[filing_status]
    title = None
    if locality:
        matches = [
            o for o in config.overlays
            if o.kind == "resident_sub_brackets" and o.locality == locality.lower()
        ]
        if not matches:
            raise click.ClickException(f"{config.name} has no resident brackets for '{locality}'")
        table = matches[0].brackets[filing_status]
        title = f"{config.name} - {locality.lower()} resident ({filing_status})"

    if output_format == "json":
        _echo_json({
            "tax_year": rules.year,
            "jurisdiction": config.name,
            "filing_status": filing_status,
            "locality": locality.lower() if locality else None,
            "standard_deduction": config.standard_deduction[filing_status],
            "brackets": [b.model_dump() for b in table],
        })
        return

    render_brackets(Console(), config, filing_status, table, title=title)


@cli.command("eligibility")
@click.option("--format", "output_format", type=click.Choice(OUTPUT_FORMATS), default=None,
              help="Output format")
def eligibility(output_format):
    """Show business structure, plan, and whether SE tax is computed."""
    output_format = _resolve_format(output_format)
    context = _load_business_context()
    selectable = can_select_business_structure(context.business_structure, context.plan)

    if output_format == "json":
        _echo_json({
            "business_structure": context.business_structure,
            "plan": context.plan,
            "selectable": selectable,
            **context.eligibility.model_dump(),
        })
        return

    render_eligibility(Console(), context, selectable)


def main():
    """Entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
