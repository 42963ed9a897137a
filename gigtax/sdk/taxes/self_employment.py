"""Self-employment tax calculations.

SE tax is the self-employed person's Social Security + Medicare, paid at the
combined employer/employee rates on 92.35% of net earnings. Everything here
is marginal: the caller says how much has already been earned this year and
how much is being added, and gets back the tax on the added slice only.
"""

from typing import Any, Dict

from ..schemas import FilingStatus
from .schemas import SelfEmploymentRules


def calc_se_components(
    ytd_net_se: float,
    new_net_se: float,
    filing_status: FilingStatus,
    se_rules: SelfEmploymentRules,
) -> Dict[str, Any]:
    """Calculate each SE tax component for new earnings on top of YTD earnings.

    The wage base is compared against the 92.35% taxable base, not raw net
    earnings, so YTD net up to about $190,700 still leaves Social Security room.

    Args:
        ytd_net_se: Net SE earnings already recorded this year (may be a loss)
        new_net_se: Net SE earnings being added
        filing_status: Selects the Additional Medicare threshold
        se_rules: Rates, wage base, and thresholds for the year

    Returns:
        Dict with:
            - taxable: SE-taxable base of the new earnings
            - social_security: SS tax on the part under the remaining wage base
            - medicare: Medicare tax (uncapped)
            - additional_medicare: 0.9% on the new slice above the threshold
            - total: Sum of the three
            - capped: Whether YTD plus new earnings reach the wage base
    """
    multiplier = se_rules.earnings_multiplier

    # Only positive cumulative earnings are taxable; a YTD loss absorbs new income first
    prior_earnings = max(0.0, ytd_net_se)
    new_earnings = max(0.0, ytd_net_se + new_net_se) - prior_earnings

    prior_base = prior_earnings * multiplier
    new_base = new_earnings * multiplier

    wage_base = se_rules.social_security_wage_base
    if new_base <= 0:
        return {
            "taxable": 0.0,
            "social_security": 0.0,
            "medicare": 0.0,
            "additional_medicare": 0.0,
            "total": 0.0,
            "capped": prior_base >= wage_base,
        }

    # Social Security only on the room left under the wage base
    remaining_cap = max(0.0, wage_base - prior_base)
    ss_taxable = min(new_base, remaining_cap)
    social_security = ss_taxable * se_rules.social_security_rate

    medicare = new_base * se_rules.medicare_rate

    # Additional Medicare on the new slice above the threshold, minus what YTD already crossed
    threshold = se_rules.additional_medicare_threshold[filing_status]
    excess_after = max(0.0, prior_base + new_base - threshold)
    excess_before = max(0.0, prior_base - threshold)
    additional_medicare = (excess_after - excess_before) * se_rules.additional_medicare_rate

    return {
        "taxable": new_base,
        "social_security": social_security,
        "medicare": medicare,
        "additional_medicare": additional_medicare,
        "total": social_security + medicare + additional_medicare,
        "capped": prior_base + new_base >= wage_base,
    }


def compute_se_tax(
    ytd_net_se: float,
    new_net_se: float,
    filing_status: FilingStatus,
    se_rules: SelfEmploymentRules,
) -> float:
    """SE tax attributable to new_net_se given ytd_net_se already earned.

    The full-year SE tax for a YTD total is compute_se_tax(0, ytd_total, ...).
    """
    return calc_se_components(ytd_net_se, new_net_se, filing_status, se_rules)["total"]
