"""Progressive bracket arithmetic shared by every jurisdiction."""

from typing import List

from ..schemas import TaxProfile
from .schemas import JurisdictionConfig, TaxBracket, check_bracket_table


def compute_taxable_income(gross_income: float, adjustments: float, deduction: float) -> float:
    """Gross income less above-the-line adjustments and the deduction, floored at zero."""
    return max(0.0, gross_income - adjustments - deduction)


def get_deduction(profile: TaxProfile, jurisdiction: JurisdictionConfig) -> float:
    """Itemized amount for itemizing profiles, else the jurisdiction's standard deduction."""
    if profile.deduction_method == "itemized" and profile.itemized_amount:
        return profile.itemized_amount
    return jurisdiction.standard_deduction[profile.filing_status]


def compute_bracket_tax(amount: float, brackets: List[TaxBracket]) -> float:
    """Calculate progressive tax on an amount.

    Each bracket taxes income up to and including its up_to bound; the final
    bracket (up_to None) is unbounded.

    Args:
        amount: Taxable amount (callers clamp to zero first)
        brackets: Ascending bracket list ending with an unbounded bracket

    Returns:
        Tax owed on amount

    Raises:
        InvalidBracketTableError: If brackets are unsorted or unterminated
    """
    check_bracket_table(brackets)

    if amount <= 0:
        return 0.0

    tax_owed = 0.0
    previous_bracket_max = 0.0

    for bracket in brackets:
        current_bracket_max = float("inf") if bracket.up_to is None else bracket.up_to
        income_in_this_bracket = min(amount, current_bracket_max) - previous_bracket_max
        if income_in_this_bracket <= 0:
            # Zero-width bracket (a leading up_to: 0)
            previous_bracket_max = current_bracket_max
            continue

        tax_owed += income_in_this_bracket * bracket.rate
        previous_bracket_max = current_bracket_max

        if amount <= current_bracket_max:
            break

    return tax_owed
