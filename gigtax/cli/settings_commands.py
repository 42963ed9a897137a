"""Settings CLI commands for gig-tax.

Manages settings.json - tax year, output format, profile path.
"""

import click

from gigtax.sdk import (
    load_settings,
    save_settings,
    get_setting,
    set_setting,
    get_settings_path,
    get_available_years,
    get_tax_year_setting,
)


@click.group()
def settings():
    """Manage settings (settings.json).

    \b
    Available settings:
    - tax_year: tax year to compute with (default: latest tables)
    - default_output_format: table or json
    - profile: path to profile.yaml outside the config directory
    """
    pass


@settings.command("show")
def settings_show():
    """Show current settings and their values."""
    settings_path = get_settings_path()
    current = load_settings()

    click.echo(f"Settings file: {settings_path}")
    click.echo(f"File exists: {settings_path.exists()}")
    click.echo()

    if not current:
        click.echo("No settings configured (using defaults).")
    else:
        click.echo("Current settings:")
        for key, value in current.items():
            click.echo(f"  {key}: {value}")

    click.echo()
    click.echo("Effective values:")
    try:
        click.echo(f"  tax_year: {get_tax_year_setting()}")
    except (FileNotFoundError, ValueError) as e:
        click.echo(f"  tax_year: unavailable ({e})")
    click.echo(f"  available tax tables: {', '.join(map(str, get_available_years()))}")


@settings.command("tax-year")
@click.argument("year", required=False)
@click.option("--clear", is_flag=True, help="Clear tax_year, revert to latest tables")
def settings_tax_year(year, clear):
    """Set or clear the tax year used for calculations.

    \b
    Examples:
        gig-tax settings tax-year 2025
        gig-tax settings tax-year --clear
    """
    if clear:
        current = load_settings()
        if "tax_year" in current:
            del current["tax_year"]
            save_settings(current)
            click.echo("Cleared tax_year setting.")
            click.echo(f"Tax year is now: {get_tax_year_setting()} (latest)")
        else:
            click.echo("tax_year was not set.")
        return

    if not year:
        configured = get_setting("tax_year")
        if configured:
            click.echo(f"Current tax_year: {configured}")
        else:
            click.echo(f"No tax_year set. Using latest tables: {get_tax_year_setting()}")
        return

    if not year.isdigit() or len(year) != 4:
        raise click.BadParameter(f"Invalid year '{year}'. Must be 4 digits.")

    try:
        resolved = get_tax_year_setting(year)
    except FileNotFoundError as e:
        raise click.ClickException(str(e))

    set_setting("tax_year", year)
    click.echo(f"Set tax_year: {year}")
    if resolved != year:
        click.echo(f"No {year} tables yet; calculations will use {resolved} tables.")
    click.echo(f"Saved to: {get_settings_path()}")


@settings.command("output-format")
@click.argument("output_format", type=click.Choice(["table", "json"]))
def settings_output_format(output_format):
    """Set the default output format for result commands."""
    set_setting("default_output_format", output_format)
    click.echo(f"Set default_output_format: {output_format}")
    click.echo(f"Saved to: {get_settings_path()}")
