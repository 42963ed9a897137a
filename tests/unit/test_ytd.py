"""Unit tests for ledger loading and YTD summaries."""

import json
from datetime import date

import pytest

from gigtax.sdk import LedgerEntry, LedgerError, load_ledger, summarize_ytd


LEDGER_YAML = """\
- date: 2024-12-30
  gross: 400
  description: New Year's Eve setup
- date: 2025-01-15
  gross: 850
  expenses: 120
  description: Wedding reception
- date: 2025-02-03
  gross: 300
- date: 2025-03-14
  gross: 1200
  expenses: 200
"""


@pytest.fixture
def yaml_ledger(tmp_path):
    path = tmp_path / "ledger.yaml"
    path.write_text(LEDGER_YAML)
    return path


class TestLoadLedger:
    """Tests for load_ledger."""

    def test_loads_yaml(self, yaml_ledger):
        entries = load_ledger(yaml_ledger)

        assert len(entries) == 4
        assert entries[1].date == date(2025, 1, 15)
        assert entries[1].net == 730
        assert entries[2].expenses == 0

    def test_loads_json(self, tmp_path):
        path = tmp_path / "ledger.json"
        path.write_text(json.dumps([
            {"date": "2025-05-01", "gross": 500, "expenses": 50},
            {"date": "2025-05-02", "gross": 250},
        ]))

        entries = load_ledger(path)

        assert [e.gross for e in entries] == [500, 250]
        assert entries[0].date == date(2025, 5, 1)

    def test_empty_file(self, tmp_path):
        path = tmp_path / "ledger.yaml"
        path.write_text("")
        assert load_ledger(path) == []

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_ledger(tmp_path / "nope.yaml")

    def test_not_a_list(self, tmp_path):
        path = tmp_path / "ledger.yaml"
        path.write_text("gross: 100\n")
        with pytest.raises(LedgerError, match="list of entries"):
            load_ledger(path)

    def test_invalid_entry_names_position(self, tmp_path):
        path = tmp_path / "ledger.yaml"
        path.write_text("- {date: 2025-01-01, gross: 100}\n- {date: 2025-01-02, gross: -5}\n")
        with pytest.raises(LedgerError, match="entry 2"):
            load_ledger(path)

    def test_unknown_field_rejected(self, tmp_path):
        path = tmp_path / "ledger.yaml"
        path.write_text("- {date: 2025-01-01, gross: 100, tips: 20}\n")
        with pytest.raises(LedgerError):
            load_ledger(path)

    def test_bad_json(self, tmp_path):
        path = tmp_path / "ledger.json"
        path.write_text("[{")
        with pytest.raises(LedgerError, match="Cannot parse"):
            load_ledger(path)


class TestSummarizeYTD:
    """Tests for summarize_ytd."""

    def test_sums_all_entries(self, yaml_ledger):
        ytd = summarize_ytd(load_ledger(yaml_ledger))

        assert ytd.gross_income == 2750
        assert ytd.net_se == 2750 - 320

    def test_filters_by_year(self, yaml_ledger):
        ytd = summarize_ytd(load_ledger(yaml_ledger), year=2025)

        assert ytd.gross_income == 2350
        assert ytd.net_se == 2350 - 320

    def test_filters_through_date(self, yaml_ledger):
        ytd = summarize_ytd(load_ledger(yaml_ledger), year=2025, through=date(2025, 2, 28))

        assert ytd.gross_income == 1150
        assert ytd.net_se == 1030

    def test_carries_adjustments(self, yaml_ledger):
        ytd = summarize_ytd(load_ledger(yaml_ledger), adjustments=500)
        assert ytd.adjustments == 500

    def test_expenses_can_exceed_gross(self):
        entries = [
            LedgerEntry(date=date(2025, 1, 1), gross=100, expenses=400),
            LedgerEntry(date=date(2025, 1, 2), gross=200),
        ]
        ytd = summarize_ytd(entries)

        assert ytd.gross_income == 300
        assert ytd.net_se == -100

    def test_no_entries(self):
        ytd = summarize_ytd([])
        assert ytd.gross_income == 0
        assert ytd.net_se == 0
