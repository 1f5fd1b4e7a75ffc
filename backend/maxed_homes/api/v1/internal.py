"""Internal endpoints called by the scheduler, not by users."""

import logging
import secrets

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from maxed_homes.api.deps import get_booking_engine, get_db
from maxed_homes.bookings.engine import BookingEngine
from maxed_homes.bookings.sweeper import sweep_expired_payments
from maxed_homes.config import settings
from maxed_homes.schemas.booking import SweepResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/internal", tags=["internal"])

CRON_SECRET_HEADER = "x-cron-secret"


def verify_cron_secret(request: Request) -> None:
    """Reject the call unless it carries the configured cron secret.

    With no secret configured every call is refused.
    """
    supplied = request.headers.get(CRON_SECRET_HEADER, "")
    if not settings.cron_secret or not secrets.compare_digest(supplied.encode(), settings.cron_secret.encode()):
        logger.warning("Rejected internal call to %s: bad or missing cron secret", request.url.path)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid cron secret",
        )


@router.post(
    "/sweep-expired-payments",
    response_model=SweepResponse,
    dependencies=[Depends(verify_cron_secret)],
    summary="Expire bookings whose payment window has closed",
)
async def sweep_expired_payments_endpoint(
    db: AsyncSession = Depends(get_db),
    engine: BookingEngine = Depends(get_booking_engine),
) -> dict[str, int]:
    expired = await sweep_expired_payments(db, engine)
    return {"expired": expired}
