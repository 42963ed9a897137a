"""Year-to-date totals from a local ledger of recorded income.

A ledger is a YAML or JSON list of entries:

    - date: 2025-03-14
      gross: 850.00
      expenses: 120.00
      description: Wedding reception

Gross income is the sum of gross amounts; net SE income is gross minus
expenses, summed over the entries that fall in the tax year.
"""

import json
import logging
import datetime
from pathlib import Path
from typing import Iterable, List, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .schemas import YTDData

logger = logging.getLogger(__name__)


class LedgerError(ValueError):
    """Raised when a ledger file cannot be read or has invalid entries."""
    pass


class LedgerEntry(BaseModel):
    """One recorded income event."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    date: datetime.date
    gross: float = Field(..., ge=0)
    expenses: float = Field(default=0, ge=0)
    description: Optional[str] = None

    @property
    def net(self) -> float:
        return self.gross - self.expenses


def load_ledger(path: Path) -> List[LedgerEntry]:
    """Load ledger entries from a .json, .yaml, or .yml file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        LedgerError: If the file is malformed or an entry is invalid
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Ledger not found: {path}")

    with open(path, "r") as f:
        try:
            if path.suffix.lower() == ".json":
                raw = json.load(f)
            else:
                raw = yaml.safe_load(f)
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise LedgerError(f"Cannot parse ledger {path}: {e}") from e

    if raw is None:
        return []
    if not isinstance(raw, list):
        raise LedgerError(f"Ledger {path} must be a list of entries")

    entries = []
    for index, item in enumerate(raw):
        try:
            entries.append(LedgerEntry.model_validate(item))
        except ValidationError as e:
            raise LedgerError(f"{path.name} entry {index + 1}: {e}") from e

    logger.debug(f"Loaded {len(entries)} ledger entries from {path}")
    return entries


def summarize_ytd(
    entries: Iterable[LedgerEntry],
    year: Optional[int] = None,
    adjustments: float = 0,
    through: Optional[datetime.date] = None,
) -> YTDData:
    """Sum ledger entries into YTD totals.

    Args:
        entries: Ledger entries
        year: Only count entries dated in this calendar year (all if None)
        adjustments: Above-the-line adjustments to carry into the totals
        through: Only count entries on or before this date
    """
    gross = 0.0
    net_se = 0.0
    skipped = 0
    for entry in entries:
        if year is not None and entry.date.year != year:
            skipped += 1
            continue
        if through is not None and entry.date > through:
            skipped += 1
            continue
        gross += entry.gross
        net_se += entry.net

    if skipped:
        logger.debug(f"summarize_ytd: skipped {skipped} entries outside the period")

    return YTDData(gross_income=gross, adjustments=adjustments, net_se=net_se)
