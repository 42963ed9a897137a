"""Unit tests for state and local tax resolution."""

import logging

import pytest

from gigtax.sdk import FILING_STATUSES, TaxProfile, YTDData
from gigtax.sdk.taxes import (
    UnknownJurisdictionError,
    compute_bracket_tax,
    compute_state_and_local_tax,
    list_counties,
    list_localities,
    load_tax_rules,
    parse_tax_rules,
    state_has_income_tax,
    state_has_local_tax,
    state_name,
    state_needs_county,
)

NO_INCOME_TAX_STATES = ["AK", "FL", "NH", "NV", "SD", "TN", "TX", "WA", "WY"]


@pytest.fixture
def rules():
    return load_tax_rules("2025")


def flat_table(rate):
    return {status: [{"up_to": None, "rate": rate}] for status in FILING_STATUSES}


def zero_deductions():
    return {status: 0 for status in FILING_STATUSES}


def make_rules(states):
    """Minimal rules with a flat federal table and the given states."""
    return parse_tax_rules({
        "year": 2025,
        "federal": {
            "name": "Federal",
            "standard_deduction": zero_deductions(),
            "brackets": flat_table(0.10),
        },
        "states": states,
        "self_employment": {
            "social_security_rate": 0.124,
            "social_security_wage_base": 176100,
            "medicare_rate": 0.029,
            "additional_medicare_threshold": {status: 200000 for status in FILING_STATUSES},
        },
    })


def ytd(gross):
    return YTDData(gross_income=gross, net_se=gross)


class TestNoIncomeTaxStates:
    """States without income tax contribute nothing at any income."""

    @pytest.mark.parametrize("state", NO_INCOME_TAX_STATES)
    def test_zero_state_and_local(self, rules, state):
        for status in FILING_STATUSES:
            profile = TaxProfile(filing_status=status, state=state)
            result = compute_state_and_local_tax(ytd(500000), profile, rules)
            assert result.state == 0
            assert result.local == 0

    def test_unknown_state_raises(self, rules):
        profile = TaxProfile(filing_status="single", state="ZZ")
        with pytest.raises(UnknownJurisdictionError) as exc_info:
            compute_state_and_local_tax(ytd(1000), profile, rules)

        assert exc_info.value.state == "ZZ"
        assert "TX" in exc_info.value.available


class TestCaliforniaSurtax:
    """Surtax on taxable income above $1M."""

    def test_below_threshold_is_plain_brackets(self, rules):
        profile = TaxProfile(filing_status="single", state="CA")
        result = compute_state_and_local_tax(ytd(105363), profile, rules)

        expected = compute_bracket_tax(100000, rules.states["CA"].brackets["single"])
        assert result.state == pytest.approx(expected)
        assert result.local == 0

    def test_above_threshold_adds_surtax_to_state(self, rules):
        profile = TaxProfile(filing_status="single", state="CA")
        # 1,105,363 gross - 5,363 standard deduction = 1,100,000 taxable
        result = compute_state_and_local_tax(ytd(1105363), profile, rules)

        brackets_only = compute_bracket_tax(1100000, rules.states["CA"].brackets["single"])
        assert result.state == pytest.approx(brackets_only + 100000 * 0.01)
        assert result.local == 0


class TestNewYorkLocalities:
    """NYC resident brackets and the Yonkers surcharge."""

    # 58,000 gross - 8,000 standard deduction = 50,000 taxable
    GROSS = 58000

    def state_tax(self, rules):
        return compute_bracket_tax(50000, rules.states["NY"].brackets["single"])

    def test_no_residency_no_local_tax(self, rules):
        profile = TaxProfile(filing_status="single", state="NY")
        result = compute_state_and_local_tax(ytd(self.GROSS), profile, rules)

        assert result.state == pytest.approx(self.state_tax(rules))
        assert result.local == 0

    def test_nyc_resident_brackets(self, rules):
        profile = TaxProfile(filing_status="single", state="NY", local_residencies={"nyc"})
        result = compute_state_and_local_tax(ytd(self.GROSS), profile, rules)

        nyc = 12000 * 0.03078 + 13000 * 0.03762 + 25000 * 0.03819
        assert result.local == pytest.approx(nyc)
        assert result.state == pytest.approx(self.state_tax(rules))

    def test_yonkers_surcharge_on_state_tax(self, rules):
        profile = TaxProfile(filing_status="single", state="NY", local_residencies={"yonkers"})
        result = compute_state_and_local_tax(ytd(self.GROSS), profile, rules)

        assert result.local == pytest.approx(self.state_tax(rules) * 0.1675)

    def test_nyc_and_yonkers_coexist(self, rules):
        both = TaxProfile(filing_status="single", state="NY", local_residencies={"nyc", "yonkers"})
        nyc = TaxProfile(filing_status="single", state="NY", local_residencies={"nyc"})
        yonkers = TaxProfile(filing_status="single", state="NY", local_residencies={"yonkers"})

        combined = compute_state_and_local_tax(ytd(self.GROSS), both, rules).local
        separate = (
            compute_state_and_local_tax(ytd(self.GROSS), nyc, rules).local
            + compute_state_and_local_tax(ytd(self.GROSS), yonkers, rules).local
        )
        assert combined == pytest.approx(separate)

    def test_residency_names_are_case_insensitive(self, rules):
        profile = TaxProfile(filing_status="single", state="ny", local_residencies={"NYC"})
        result = compute_state_and_local_tax(ytd(self.GROSS), profile, rules)

        assert result.local > 0


class TestMarylandCounties:
    """County piggyback tax as a flat rate on state taxable income."""

    # 52,550 gross - 2,550 standard deduction = 50,000 taxable
    GROSS = 52550

    def test_known_county(self, rules):
        profile = TaxProfile(filing_status="single", state="MD", county="Montgomery")
        result = compute_state_and_local_tax(ytd(self.GROSS), profile, rules)

        assert result.state == pytest.approx(20 + 30 + 40 + 47000 * 0.0475)
        assert result.local == pytest.approx(50000 * 0.032)

    def test_missing_county_contributes_zero(self, rules, caplog):
        profile = TaxProfile(filing_status="single", state="MD")
        with caplog.at_level(logging.WARNING):
            result = compute_state_and_local_tax(ytd(self.GROSS), profile, rules)

        assert result.local == 0
        assert result.state > 0
        assert "no county" in caplog.text

    def test_unknown_county_contributes_zero(self, rules, caplog):
        profile = TaxProfile(filing_status="single", state="MD", county="Atlantis")
        with caplog.at_level(logging.WARNING):
            result = compute_state_and_local_tax(ytd(self.GROSS), profile, rules)

        assert result.local == 0
        assert "Atlantis" in caplog.text


class TestOverlayOrdering:
    """State-level overlays run before local overlays regardless of table order."""

    def test_surcharge_sees_surtax(self):
        rules = make_rules({
            "ZZ": {
                "name": "Testland",
                "standard_deduction": zero_deductions(),
                "brackets": flat_table(0.05),
                "overlays": [
                    {"kind": "percentage_surcharge", "locality": "town", "rate": 0.5},
                    {"kind": "surtax_above_threshold", "threshold": 10000, "extra_rate": 0.01},
                ],
            },
        })
        profile = TaxProfile(filing_status="single", state="ZZ", local_residencies={"town"})
        result = compute_state_and_local_tax(ytd(20000), profile, rules)

        assert result.state == pytest.approx(1000 + 100)
        assert result.local == pytest.approx(1100 * 0.5)

    def test_overlays_alone_mark_a_state_as_taxing(self):
        rules = make_rules({
            "ZZ": {
                "name": "Testland",
                "standard_deduction": zero_deductions(),
                "brackets": flat_table(0),
                "overlays": [{"kind": "flat_regional_rate", "rates": {"Central": 0.01}}],
            },
        })
        profile = TaxProfile(filing_status="single", state="ZZ", county="Central")
        result = compute_state_and_local_tax(ytd(20000), profile, rules)

        assert result.state == 0
        assert result.local == pytest.approx(200)


class TestJurisdictionHelpers:
    """Lookups used when building a profile."""

    def test_state_name(self, rules):
        assert state_name("ny", rules) == "New York"

    def test_income_tax_flags(self, rules):
        assert state_has_income_tax("TX", rules) is False
        assert state_has_income_tax("CA", rules) is True

    def test_county_requirement(self, rules):
        assert state_needs_county("MD", rules) is True
        assert state_needs_county("NY", rules) is False

    def test_local_tax_flags(self, rules):
        assert state_has_local_tax("NY", rules) is True
        assert state_has_local_tax("MD", rules) is True
        assert state_has_local_tax("CA", rules) is False

    def test_list_counties_sorted(self, rules):
        counties = list_counties("MD", rules)

        assert "Montgomery" in counties
        assert counties == sorted(counties)
        assert list_counties("CA", rules) == []

    def test_list_localities(self, rules):
        assert list_localities("NY", rules) == ["nyc", "yonkers"]

    def test_helpers_reject_unknown_state(self, rules):
        with pytest.raises(UnknownJurisdictionError):
            state_needs_county("ZZ", rules)
