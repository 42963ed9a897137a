"""Rich renderers for tax estimates and set-asides.

Transforms SDK results into formatted Rich tables.
"""

from typing import List, Optional

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from gigtax.sdk import (
    BusinessContext,
    MarginalResult,
    TaxBreakdown,
    TaxProfile,
    TaxResult,
    TransactionSummary,
    YTDData,
)
from gigtax.sdk.taxes import JurisdictionConfig, TaxBracket


def render_tax_result(console: Console, result: TaxResult, ytd: YTDData, profile: TaxProfile, year: str) -> None:
    """Render a YTD estimate as a component table."""
    _render_context(console, profile, year)

    table = Table(title=f"Estimated {year} Tax on YTD Income", box=box.ROUNDED)
    table.add_column("", style="bold", min_width=22)
    table.add_column("Amount", justify="right", min_width=12)

    table.add_row("Gross Income", _fmt(ytd.gross_income))
    if ytd.adjustments:
        table.add_row("  Adjustments", _fmt(-ytd.adjustments), style="dim")
    table.add_row("Net SE Income", _fmt(ytd.net_se))
    table.add_row("", "")
    _add_breakdown_rows(table, result.breakdown)
    table.add_row("", "")
    table.add_row("[bold]TOTAL TAX[/bold]", f"[bold]{_fmt(result.total)}[/bold]")
    table.add_row("Effective Rate", _pct(result.effective_rate))

    console.print(table)


def render_marginal_result(
    console: Console,
    result: MarginalResult,
    summary: TransactionSummary,
    profile: TaxProfile,
    year: str,
    context: Optional[BusinessContext] = None,
) -> None:
    """Render the set-aside for one transaction."""
    _render_context(console, profile, year)

    if context is not None and not context.eligibility.uses_self_employment_tax:
        console.print(Panel(
            f"[yellow]SE tax is not computed for {context.business_structure}[/yellow]",
            title="Note",
            border_style="yellow",
        ))

    table = Table(title="Set-Aside for This Transaction", box=box.ROUNDED)
    table.add_column("", style="bold", min_width=22)
    table.add_column("Amount", justify="right", min_width=12)

    table.add_row("Gross", _fmt(summary.gross))
    if summary.expenses:
        table.add_row("Expenses", _fmt(summary.expenses))
    table.add_row("Net", _fmt(summary.net))
    table.add_row("", "")
    _add_breakdown_rows(table, result.breakdown)
    table.add_row("", "")
    table.add_row(
        "[bold green]SET ASIDE[/bold green]",
        f"[bold green]{_fmt(result.amount)}[/bold green]",
    )
    table.add_row("Marginal Rate", _pct(result.rate))
    table.add_row("", "")
    table.add_row("[bold]TAKE HOME[/bold]", f"[bold]{_fmt(summary.take_home)}[/bold]")

    console.print(table)


def render_states(console: Console, rows: List[dict]) -> None:
    """Render the jurisdiction list."""
    table = Table(title="Jurisdictions", box=box.SIMPLE)
    table.add_column("Code", style="bold")
    table.add_column("Name")
    table.add_column("Income Tax", justify="center")
    table.add_column("County", justify="center")
    table.add_column("Localities")

    for row in rows:
        table.add_row(
            row["code"],
            row["name"],
            _flag(row["income_tax"]),
            _flag(row["requires_county"]),
            ", ".join(row["localities"]) or "-",
        )

    console.print(table)


def render_brackets(
    console: Console,
    jurisdiction: JurisdictionConfig,
    filing_status: str,
    brackets: List[TaxBracket],
    title: Optional[str] = None,
) -> None:
    """Render a bracket table with its standard deduction."""
    table = Table(title=title or f"{jurisdiction.name} ({filing_status})", box=box.ROUNDED)
    table.add_column("Over", justify="right")
    table.add_column("Up To", justify="right")
    table.add_column("Rate", justify="right")

    lower = 0.0
    for bracket in brackets:
        upper = "-" if bracket.up_to is None else _fmt(bracket.up_to)
        table.add_row(_fmt(lower), upper, _pct(bracket.rate))
        if bracket.up_to is not None:
            lower = bracket.up_to

    console.print(table)
    console.print(f"Standard deduction: {_fmt(jurisdiction.standard_deduction[filing_status])}", style="dim")
    for overlay in jurisdiction.overlays:
        console.print(f"Overlay: {overlay.kind}", style="dim")


def render_eligibility(console: Console, context: BusinessContext, selectable: bool) -> None:
    """Render business structure, plan, and SE eligibility."""
    eligibility = context.eligibility

    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("key", style="dim")
    table.add_column("value")

    table.add_row("Business Structure", context.business_structure)
    table.add_row("Plan", context.plan)
    table.add_row("SE Tax", "computed" if eligibility.uses_self_employment_tax else "not computed")
    table.add_row("Requires Pro", _flag(eligibility.requires_higher_tier_for_selection))
    table.add_row("Selectable", "[green]yes[/green]" if selectable else "[red]no[/red]")

    console.print(Panel(table, title="Eligibility", border_style="dim"))


def _render_context(console: Console, profile: TaxProfile, year: str) -> None:
    """Render the profile the numbers were computed for."""
    parts = [profile.filing_status, profile.state]
    if profile.county:
        parts.append(profile.county)
    if profile.local_residencies:
        parts.append("+".join(sorted(profile.local_residencies)))
    parts.append(f"{year} tables")
    console.print(" | ".join(parts), style="dim")


def _add_breakdown_rows(table: Table, breakdown: TaxBreakdown) -> None:
    table.add_row("  Federal Income Tax", _fmt(breakdown.federal))
    table.add_row("  State Income Tax", _fmt(breakdown.state))
    table.add_row("  Local Tax", _fmt(breakdown.local))
    table.add_row("  Self-Employment Tax", _fmt(breakdown.se_tax))


def _flag(value: bool) -> str:
    return "yes" if value else "-"


def _pct(rate: float) -> str:
    return f"{rate * 100:.2f}%"


def _fmt(amount: Optional[float]) -> str:
    """Format currency amount."""
    if amount is None:
        return "-"
    if amount < 0:
        return f"-${-amount:,.2f}"
    return f"${amount:,.2f}"
