from __future__ import annotations

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Body, Depends, Path, Request
from fastapi.responses import JSONResponse

from app.api.auth import require_token
from app.models.climate import CandleOut, InvalidEvent, validate_climate_event
from app.state import AppState

log = logging.getLogger("api")

router = APIRouter()


def get_state(request: Request) -> AppState:
    return request.app.state.climate


@router.get(
    "/api/climate-metrics/{city}",
    response_model=List[CandleOut],
    dependencies=[Depends(require_token)],
)
def climate_metrics(
    city: str = Path(..., min_length=1, description="City name, e.g., CapeTown"),
    state: AppState = Depends(get_state),
):
    """
    Hourly temperature candles for one city, oldest first.
    Unknown city -> empty list (still 200).
    """
    return [c.to_dict() for c in state.service.get_candlesticks(city)]


@router.post("/dev/simulate_event", dependencies=[Depends(require_token)])
def dev_simulate_event(
    payload: Dict[str, Any] = Body(..., description="Raw event in the stream wire format"),
    state: AppState = Depends(get_state),
):
    """
    Dev-only helper:
    Feeds ONE raw event through the same validation + service path the
    stream uses, inside the running API process.
    """
    result = validate_climate_event(payload)
    if isinstance(result, InvalidEvent):
        errors = [{"loc": list(e["loc"]), "msg": e["msg"]} for e in result.errors]
        log.warning("Rejected simulated event errors=%s", errors)
        return JSONResponse(status_code=422, content={"ok": False, "errors": errors})

    event = result.event
    state.service.process_event(event)
    candles = state.service.get_candlesticks(event.city)
    return {"ok": True, "city": event.city, "candle_count": len(candles)}
