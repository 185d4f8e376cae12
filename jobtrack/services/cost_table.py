from __future__ import annotations

import json
import math
import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional

HOURS_PER_DAY = 8

# Agency hourly rates in pence; include CIS deductions, taxes and agency fees.
AGENCY_RATES: Dict[str, int] = {
    "Labourer": 1375,
    "CCDO Labourer": 1700,
    "Groundworker": 1900,
    "Handyman": 1850,
    "Carpenter": 2600,
    "Steel Fixer": 2350,
    "Steel Erector": 2200,
    "Shuttering Carpenter": 2500,
    "Painter": 1800,
    "Bricklayer": 2650,
    "Hod Carrier": 1600,
    "Dryliner": 2300,
    "Cladding Fixer": 2200,
    "Tape and Jointer": 2200,
    "Tiler": 2000,
    "Plasterer": 2200,
    "Electrician": 2300,
    "Scaffolder": 2000,
    "PASMA Operator": 2300,
    "Dumper Driver": 1800,
    "Digger Driver": 1900,
    "360 Driver": 2000,
    "Telehandler": 1650,
    "Plumber": 2500,
}


def _trade_key(trade_name: str) -> str:
    return " ".join(str(trade_name or "").split()).lower()


@dataclass(frozen=True)
class CostTable:
    """
    Read-only trade -> hourly agency rate (pence) lookup.

    Passed explicitly into costing code so a tenant or test can swap it.
    Unknown trades resolve to None: the caller falls back to manual entry.
    """

    rates: Mapping[str, int]
    _index: Mapping[str, int] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        for trade, rate in self.rates.items():
            if int(rate) < 0:
                raise ValueError(f"Negative rate for trade: {trade}")
        object.__setattr__(self, "rates", MappingProxyType(dict(self.rates)))
        object.__setattr__(
            self,
            "_index",
            MappingProxyType({_trade_key(t): int(r) for t, r in self.rates.items()}),
        )

    def rate_for(self, trade_name: str) -> Optional[int]:
        return self._index.get(_trade_key(trade_name))

    def daily_rate(self, trade_name: str) -> Optional[int]:
        rate = self.rate_for(trade_name)
        if rate is None:
            return None
        return rate * HOURS_PER_DAY

    def trades(self) -> List[str]:
        return sorted(self.rates)


DEFAULT_COST_TABLE = CostTable(AGENCY_RATES)


def calculate_day_blocks(hours: float) -> int:
    """
    Any work up to a standard day books a whole day; beyond that round up.

      4h -> 1, 8h -> 1, 12h -> 2, 20h -> 3
    """
    if hours <= 0:
        return 0
    if hours <= HOURS_PER_DAY:
        return 1
    return int(math.ceil(hours / HOURS_PER_DAY))


def day_block_cost(hours: float, hourly_rate_pence: int) -> Dict[str, int]:
    day_blocks = calculate_day_blocks(hours)
    total_hours = day_blocks * HOURS_PER_DAY
    return {
        "day_blocks": day_blocks,
        "total_hours": total_hours,
        "hourly_rate": int(hourly_rate_pence),
        "total_cost_pence": total_hours * int(hourly_rate_pence),
    }


def format_cost(pence: int) -> str:
    return f"£{pence / 100:.2f}"


@lru_cache(maxsize=8)
def _load_overrides(path: str) -> Dict[str, int]:
    raw = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(raw, dict):
        raise ValueError("COST_TABLE_PATH must contain a JSON object of trade -> pence")
    return {str(k): int(v) for k, v in raw.items()}


def load_cost_table() -> CostTable:
    path = os.getenv("COST_TABLE_PATH")
    if not path:
        return DEFAULT_COST_TABLE

    rates = dict(AGENCY_RATES)
    rates.update(_load_overrides(path))
    return CostTable(rates)
