"""Unit tests for self-employment tax.

Covers the Social Security wage base, Additional Medicare threshold
crossings, and how YTD losses absorb new earnings.
"""

import pytest

from gigtax.sdk.taxes import (
    SelfEmploymentRules,
    calc_se_components,
    compute_se_tax,
    load_tax_rules,
)


@pytest.fixture
def se_rules():
    return load_tax_rules("2025").self_employment


@pytest.fixture
def unit_multiplier_rules():
    """Rules with a 1.0 earnings multiplier so thresholds land on round numbers."""
    return SelfEmploymentRules(
        social_security_rate=0.124,
        social_security_wage_base=176100,
        medicare_rate=0.029,
        additional_medicare_rate=0.009,
        additional_medicare_threshold={
            "single": 200000,
            "married_joint": 250000,
            "married_separate": 125000,
            "head": 200000,
        },
        earnings_multiplier=1.0,
    )


class TestBasicSETax:
    """SE tax on earnings well under every cap."""

    def test_no_earnings(self, se_rules):
        assert compute_se_tax(0, 0, "single", se_rules) == 0

    def test_loss_is_not_taxed(self, se_rules):
        assert compute_se_tax(0, -500, "single", se_rules) == 0

    def test_first_thousand(self, se_rules):
        """$1,000 net -> $923.50 base at 15.3%."""
        assert compute_se_tax(0, 1000, "single", se_rules) == pytest.approx(141.2955)

    def test_components(self, se_rules):
        parts = calc_se_components(0, 1000, "single", se_rules)

        assert parts["taxable"] == pytest.approx(923.50)
        assert parts["social_security"] == pytest.approx(114.514)
        assert parts["medicare"] == pytest.approx(26.7815)
        assert parts["additional_medicare"] == 0
        assert parts["capped"] is False


class TestWageBase:
    """Social Security stops at the wage base; Medicare does not."""

    def test_past_wage_base_pays_no_social_security(self, se_rules):
        # 200,000 x 0.9235 = 184,700 SE base, above the 176,100 wage base
        parts = calc_se_components(200000, 1000, "single", se_rules)

        assert parts["social_security"] == 0
        assert parts["medicare"] == pytest.approx(26.7815)
        assert parts["total"] == pytest.approx(26.7815)
        assert parts["capped"] is True

    def test_crossing_wage_base_taxes_only_remaining_room(self, se_rules):
        # 190,000 x 0.9235 = 175,465 -> 635 of room left
        parts = calc_se_components(190000, 1000, "single", se_rules)

        assert parts["social_security"] == pytest.approx(635 * 0.124)
        assert parts["medicare"] == pytest.approx(923.5 * 0.029)

    def test_wage_base_compared_against_taxable_base(self, se_rules):
        # 180,000 net is over 176,100, but 180,000 x 0.9235 = 166,230 is not
        parts = calc_se_components(180000, 1000, "single", se_rules)

        assert parts["social_security"] == pytest.approx(923.5 * 0.124)
        assert parts["capped"] is False

    def test_wage_base_delta_smaller_than_uncapped(self, se_rules):
        capped = compute_se_tax(200000, 1000, "single", se_rules)
        uncapped = compute_se_tax(0, 1000, "single", se_rules)

        assert capped < uncapped


class TestAdditionalMedicare:
    """Additional Medicare applies only to the slice above the threshold."""

    def test_below_threshold(self, unit_multiplier_rules):
        parts = calc_se_components(150000, 1000, "single", unit_multiplier_rules)
        assert parts["additional_medicare"] == 0

    def test_crossing_threshold_charges_only_excess(self, unit_multiplier_rules):
        parts = calc_se_components(199500, 1000, "single", unit_multiplier_rules)
        assert parts["additional_medicare"] == pytest.approx(500 * 0.009)

    def test_already_past_threshold_charges_full_slice(self, unit_multiplier_rules):
        parts = calc_se_components(201000, 1000, "single", unit_multiplier_rules)
        assert parts["additional_medicare"] == pytest.approx(1000 * 0.009)

    def test_threshold_depends_on_filing_status(self, unit_multiplier_rules):
        separate = calc_se_components(130000, 1000, "married_separate", unit_multiplier_rules)
        joint = calc_se_components(130000, 1000, "married_joint", unit_multiplier_rules)

        assert separate["additional_medicare"] == pytest.approx(1000 * 0.009)
        assert joint["additional_medicare"] == 0

    def test_split_earnings_match_lump_sum(self, unit_multiplier_rules):
        """Crossing the threshold in two steps is never double-counted."""
        first = compute_se_tax(0, 150000, "single", unit_multiplier_rules)
        second = compute_se_tax(150000, 100000, "single", unit_multiplier_rules)
        lump = compute_se_tax(0, 250000, "single", unit_multiplier_rules)

        assert first + second == pytest.approx(lump)


class TestYTDLosses:
    """A YTD loss absorbs new earnings before any SE tax is due."""

    def test_loss_partially_absorbs_new_earnings(self, se_rules):
        assert compute_se_tax(-500, 1000, "single", se_rules) == pytest.approx(
            compute_se_tax(0, 500, "single", se_rules)
        )

    def test_loss_fully_absorbs_new_earnings(self, se_rules):
        assert compute_se_tax(-2000, 1000, "single", se_rules) == 0

    def test_new_loss_after_earnings_is_zero_not_negative(self, se_rules):
        assert compute_se_tax(5000, -1000, "single", se_rules) == 0
