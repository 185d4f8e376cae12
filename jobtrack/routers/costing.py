from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from jobtrack.deps.auth import AuthContext, require_auth
from jobtrack.services.cost_table import day_block_cost, format_cost, load_cost_table

router = APIRouter(prefix="/costing", tags=["Costing"])


class TradeRate(BaseModel):
    trade: str
    hourly_rate: Optional[int]
    daily_rate: Optional[int]
    manual_entry: bool


class DayBlockCost(BaseModel):
    trade: str
    hours: float
    day_blocks: int
    total_hours: int
    hourly_rate: int
    total_cost_pence: int
    total_cost_display: str


@router.get("/rates", response_model=list[TradeRate])
def list_rates(_auth: AuthContext = Depends(require_auth)):
    table = load_cost_table()
    return [
        {
            "trade": trade,
            "hourly_rate": table.rate_for(trade),
            "daily_rate": table.daily_rate(trade),
            "manual_entry": False,
        }
        for trade in table.trades()
    ]


@router.get("/rates/{trade}", response_model=TradeRate)
def get_rate(trade: str, _auth: AuthContext = Depends(require_auth)):
    table = load_cost_table()
    hourly = table.rate_for(trade)
    # unknown trades are priced by hand, not rejected
    return {
        "trade": trade,
        "hourly_rate": hourly,
        "daily_rate": table.daily_rate(trade),
        "manual_entry": hourly is None,
    }


@router.get("/day-block-cost", response_model=DayBlockCost)
def get_day_block_cost(
    trade: str,
    hours: float = Query(..., ge=0),
    hourly_rate: Optional[int] = Query(None, ge=0),
    _auth: AuthContext = Depends(require_auth),
):
    rate = hourly_rate if hourly_rate is not None else load_cost_table().rate_for(trade)
    if rate is None:
        raise HTTPException(status_code=400, detail=f"No agency rate for trade '{trade}'; supply hourly_rate")

    cost = day_block_cost(hours, rate)
    return {
        "trade": trade,
        "hours": hours,
        **cost,
        "total_cost_display": format_cost(cost["total_cost_pence"]),
    }
