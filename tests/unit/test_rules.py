"""Unit tests for tax rules loading and validation."""

import shutil

import pytest
import yaml

import gigtax.sdk.taxes.rules as rules_module
from gigtax.sdk import FILING_STATUSES
from gigtax.sdk.taxes import (
    TaxRulesError,
    clear_tax_rules_cache,
    get_available_years,
    get_ss_wage_base,
    load_tax_rules,
    parse_tax_rules,
    resolve_tax_year,
)


@pytest.fixture
def rules_dir(tmp_path, monkeypatch):
    """Point the loader at an empty temporary tax-rules directory."""
    real_file = rules_module._get_tax_rules_dir() / "2025.yaml"
    monkeypatch.setattr(rules_module, "_get_tax_rules_dir", lambda: tmp_path)
    clear_tax_rules_cache()
    yield {"path": tmp_path, "real_file": real_file}
    clear_tax_rules_cache()


def base_rules():
    """Raw 2025 rules as a mutable dict."""
    with open(rules_module._get_tax_rules_dir() / "2025.yaml") as f:
        return yaml.safe_load(f)


class TestLoadTaxRules:
    """Tests for the shipped tables."""

    def test_loads_2025(self):
        rules = load_tax_rules("2025")

        assert rules.year == 2025
        assert {"TX", "TN", "CA", "NY", "MD"} <= set(rules.states)
        assert rules.federal.standard_deduction["single"] == 15000
        assert rules.self_employment.social_security_wage_base == 176100

    def test_every_table_has_every_filing_status(self):
        rules = load_tax_rules("2025")
        for jurisdiction in [rules.federal, *rules.states.values()]:
            for status in FILING_STATUSES:
                assert jurisdiction.brackets[status][-1].up_to is None

    def test_cached_per_process(self):
        assert load_tax_rules("2025") is load_tax_rules("2025")

    def test_missing_year(self):
        with pytest.raises(FileNotFoundError):
            load_tax_rules("1990")

    def test_ss_wage_base(self):
        assert get_ss_wage_base("2025") == 176100


class TestResolveTaxYear:
    def test_latest_by_default(self):
        assert resolve_tax_year() == str(max(get_available_years()))

    def test_future_year_falls_back(self):
        latest = max(get_available_years())
        assert resolve_tax_year(latest + 5) == str(latest)

    def test_year_before_any_table(self):
        with pytest.raises(FileNotFoundError):
            resolve_tax_year(1900)

    def test_no_tables(self, rules_dir):
        with pytest.raises(FileNotFoundError, match="No tax rules files"):
            resolve_tax_year()


class TestMalformedRules:
    """Malformed tables fail at load, not at calculation."""

    def test_unsorted_brackets(self):
        data = base_rules()
        data["states"]["CA"]["brackets"]["single"][1]["up_to"] = 1
        with pytest.raises(TaxRulesError, match="single"):
            parse_tax_rules(data)

    def test_unterminated_brackets(self):
        data = base_rules()
        data["federal"]["brackets"]["head"][-1]["up_to"] = 900000
        with pytest.raises(TaxRulesError, match="unbounded"):
            parse_tax_rules(data)

    def test_missing_filing_status(self):
        data = base_rules()
        del data["states"]["NY"]["standard_deduction"]["head"]
        with pytest.raises(TaxRulesError, match="head"):
            parse_tax_rules(data)

    def test_unknown_overlay_kind(self):
        data = base_rules()
        data["states"]["CA"]["overlays"] = [{"kind": "lottery", "rate": 0.5}]
        with pytest.raises(TaxRulesError):
            parse_tax_rules(data)

    def test_bad_state_code(self):
        data = base_rules()
        data["states"]["texas"] = data["states"]["TX"]
        with pytest.raises(TaxRulesError, match="two uppercase letters"):
            parse_tax_rules(data)

    def test_not_a_mapping(self):
        with pytest.raises(TaxRulesError, match="mapping"):
            parse_tax_rules(["year", 2025])

    def test_unparseable_yaml_file(self, rules_dir):
        (rules_dir["path"] / "1999.yaml").write_text("year: [1999\nfederal: {")
        with pytest.raises(TaxRulesError, match="Cannot parse"):
            load_tax_rules("1999")

    def test_declared_year_must_match_file(self, rules_dir):
        shutil.copy(rules_dir["real_file"], rules_dir["path"] / "1998.yaml")
        with pytest.raises(TaxRulesError, match="declares year 2025"):
            load_tax_rules("1998")

    def test_error_names_the_file(self, rules_dir):
        (rules_dir["path"] / "1997.yaml").write_text("year: 1997\nfederal: {}\n")
        with pytest.raises(TaxRulesError, match="1997.yaml"):
            load_tax_rules("1997")
