"""Business structure and plan resolution.

One place decides whether SE tax applies to a taxpayer and whether a business
structure may be selected on the current plan. Callers resolve once and pass
the result into the engine instead of re-deriving it.

Only sole proprietors and single-member LLCs are taxed on SE earnings here.
S-corp and multi-member entities only track income and expenses; their
payroll/SE tax is left to the taxpayer's accountant. Selecting the S-corp
structure is a Pro feature, which is a product rule and is reported
separately from the tax flag.
"""

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict


BusinessStructure = Literal["individual", "llc_single_member", "llc_scorp", "llc_multi_member"]
Plan = Literal["free", "pro"]

BUSINESS_STRUCTURES: tuple = ("individual", "llc_single_member", "llc_scorp", "llc_multi_member")

PAID_TIERS = ("monthly", "yearly")
ACTIVE_STATUSES = ("active", "trialing")
PRO_PROFILE_PLANS = ("pro_monthly", "pro_yearly")


class BusinessStructureEligibility(BaseModel):
    """Whether SE tax applies, and whether choosing the structure needs Pro."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    uses_self_employment_tax: bool
    requires_higher_tier_for_selection: bool


# (uses_self_employment_tax, requires_higher_tier_for_selection)
_ELIGIBILITY = {
    "individual": (True, False),
    "llc_single_member": (True, False),
    "llc_scorp": (False, True),
    "llc_multi_member": (False, False),
}


def resolve_plan(
    subscription_tier: Optional[str] = None,
    subscription_status: Optional[str] = None,
    profile_plan: Optional[str] = None,
) -> Plan:
    """Resolve the effective plan from billing state.

    An active or trialing monthly/yearly subscription is Pro, as is a profile
    carrying a pro_monthly/pro_yearly plan. Everything else is Free.
    """
    if subscription_status in ACTIVE_STATUSES and subscription_tier in PAID_TIERS:
        return "pro"
    if profile_plan in PRO_PROFILE_PLANS:
        return "pro"
    return "free"


def coerce_business_structure(value: object) -> BusinessStructure:
    """Known structure names pass through; anything else is 'individual'."""
    if value in BUSINESS_STRUCTURES:
        return value
    return "individual"


def resolve_eligibility(business_structure: BusinessStructure, plan: Plan) -> BusinessStructureEligibility:
    """Look up SE tax eligibility for a business structure.

    The plan does not change the result; it is accepted so every caller goes
    through the same resolution with the same inputs.
    """
    uses_se_tax, requires_pro = _ELIGIBILITY[coerce_business_structure(business_structure)]
    return BusinessStructureEligibility(
        uses_self_employment_tax=uses_se_tax,
        requires_higher_tier_for_selection=requires_pro,
    )


def can_select_business_structure(business_structure: BusinessStructure, plan: Plan) -> bool:
    """Product gate: may this structure be chosen on this plan?"""
    eligibility = resolve_eligibility(business_structure, plan)
    return not eligibility.requires_higher_tier_for_selection or plan == "pro"
