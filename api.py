from __future__ import annotations

import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from practicebook.config import Settings, settings as default_settings
from practicebook.models import BookingRequest, InvalidDateError, UnknownSlotError
from practicebook.services import Services, build_services
from practicebook.tools.pricing import payment_config
from practicebook.tools.slots import parse_date

logging.basicConfig(
    level=default_settings.log_level,
    format="%(asctime)s [%(levelname)s] %(message)s",
)
logger = logging.getLogger("practicebook.api")


class SlotStatus(BaseModel):
    time: str
    available: bool


class AvailabilityResponse(BaseModel):
    start_date: str = Field(serialization_alias="startDate")
    days: int
    availability: Dict[str, List[SlotStatus]]
    demo: bool = Field(default=False, description="Calendar not configured, all slots shown open")
    degraded: bool = Field(default=False, description="Calendar unreachable, all slots shown open")


class SlotCheckResponse(BaseModel):
    date: str
    slot: str
    available: bool
    fallback: bool = Field(default=False, description="Check failed, reported available")
    demo: bool = False


class BookRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(min_length=1)
    email: str = Field(min_length=3)
    phone: str = Field(min_length=1)
    date: str
    slot: str
    currency: str = Field(default="INR")
    amount: float = Field(default=0, ge=0)
    transaction_id: str = Field(alias="transactionId", min_length=1)


class StageErrorModel(BaseModel):
    stage: str
    message: str


class BookResponse(BaseModel):
    success: bool
    conflict: bool = False
    transaction_id: str = Field(serialization_alias="transactionId")
    calendar_event_id: Optional[str] = Field(default=None, serialization_alias="calendarEventId")
    persisted_record_id: Optional[str] = Field(default=None, serialization_alias="persistedRecordId")
    errors: List[StageErrorModel] = Field(default_factory=list)
    message: Optional[str] = None


class PaymentConfigResponse(BaseModel):
    currency: str
    amount: float
    provider: str
    symbol: str


def _parse_date_or_400(value: str):
    try:
        return parse_date(value)
    except InvalidDateError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e


def create_app(settings: Optional[Settings] = None, services: Optional[Services] = None) -> FastAPI:
    """Create the booking API.

    Args:
        settings: Defaults to the environment-derived settings.
        services: Pre-built components (tests inject fakes here).
    """
    settings = settings or default_settings
    services = services or build_services(settings)
    started_at = time.monotonic()

    app = FastAPI(title="Practice Booking API", version="0.1.0")

    @app.get("/health")
    def health() -> Dict[str, Any]:
        return {
            "status": "ok",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "uptime": round(time.monotonic() - started_at, 3),
        }

    @app.get("/calendar", response_model=AvailabilityResponse)
    async def calendar_availability(
        date: str = Query(..., description="YYYY-MM-DD"),
        days: Optional[int] = Query(default=1, description=f"Clamped to 1..{settings.max_window_days}"),
    ) -> AvailabilityResponse:
        """Availability of every template slot for `days` days from `date`."""
        start = _parse_date_or_400(date)
        loop = asyncio.get_running_loop()
        result = await loop.run_in_executor(None, services.calculator.get_availability, start, days)

        return AvailabilityResponse(
            start_date=result.start_date.isoformat(),
            days=result.days,
            availability={
                day: [SlotStatus(**s.to_dict()) for s in slots]
                for day, slots in result.availability.items()
            },
            demo=result.demo,
            degraded=result.degraded,
        )

    @app.get("/calendar/check", response_model=SlotCheckResponse)
    async def calendar_check(
        date: str = Query(..., description="YYYY-MM-DD"),
        slot: str = Query(..., description='Slot label, e.g. "04:00 PM"'),
    ) -> SlotCheckResponse:
        """Fresh check of one slot right before payment. Fails open."""
        day = _parse_date_or_400(date)
        loop = asyncio.get_running_loop()
        try:
            check = await loop.run_in_executor(None, services.guard.check, day, slot)
        except UnknownSlotError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e

        return SlotCheckResponse(
            date=check.date.isoformat(),
            slot=check.slot,
            available=check.available,
            fallback=check.fallback,
            demo=check.demo,
        )

    @app.post("/book", response_model=BookResponse)
    async def book(req: BookRequest):
        """Finalize a paid booking: re-check, calendar event, record, emails.

        200 on success, 409 when the slot was taken after payment, 500 when
        the confirmation could not be sent. Ids are returned in every case.
        """
        day = _parse_date_or_400(req.date)
        request = BookingRequest(
            customer_name=req.name.strip(),
            customer_email=req.email.strip(),
            customer_phone=req.phone.strip(),
            date=day,
            slot_label=req.slot,
            currency=req.currency.upper(),
            amount=req.amount,
            transaction_id=req.transaction_id,
        )

        loop = asyncio.get_running_loop()
        try:
            outcome = await loop.run_in_executor(None, services.reconciler.finalize, request)
        except UnknownSlotError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e

        if outcome.conflict:
            status_code = 409
            message = "Payment received but this slot was just taken. Please pick another time; we will contact you."
        elif outcome.success:
            status_code = 200
            message = None
        else:
            status_code = 500
            message = "Booking recorded but the confirmation could not be sent. We will contact you."

        response = BookResponse(
            success=outcome.success,
            conflict=outcome.conflict,
            transaction_id=outcome.transaction_id,
            calendar_event_id=outcome.calendar_event_id,
            persisted_record_id=outcome.persisted_record_id,
            errors=[StageErrorModel(stage=e.stage, message=e.message) for e in outcome.errors],
            message=message,
        )
        return JSONResponse(status_code=status_code, content=response.model_dump(by_alias=True))

    @app.get("/payment-config", response_model=PaymentConfigResponse)
    def get_payment_config(country: Optional[str] = Query(default=None)) -> PaymentConfigResponse:
        return PaymentConfigResponse(**payment_config(country))

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8001)
