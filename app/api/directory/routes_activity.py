from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.async_db import run_sync
from app.domain.models import User
from app.domain.models.requests import BookingRequest, DestinationRequest, RateRequest, ReviewRequest
from app.services import ActivityService, BookingService
from app.services.activity_service import serialize_activity

from ..common import envelope, get_current_user, get_db

router = APIRouter(prefix="/activity", tags=["activity"])


@router.post("/save", status_code=201)
async def save_destination(
    payload: DestinationRequest, user: User = Depends(get_current_user), db: Session = Depends(get_db)
):
    activity = await run_sync(ActivityService(db).save, user, payload.business_user_id)
    return envelope(serialize_activity(activity), "Destination saved successfully.")


@router.post("/unsave")
async def unsave_destination(
    payload: DestinationRequest, user: User = Depends(get_current_user), db: Session = Depends(get_db)
):
    await run_sync(ActivityService(db).unsave, user, payload.business_user_id)
    return envelope(None, "Destination unsaved successfully.")


@router.post("/rate")
async def rate_destination(
    payload: RateRequest, user: User = Depends(get_current_user), db: Session = Depends(get_db)
):
    activity = await run_sync(ActivityService(db).rate, user, payload.business_user_id, payload.rating)
    return envelope(serialize_activity(activity), "Rating submitted successfully.")


@router.post("/review", status_code=201)
async def review_destination(
    payload: ReviewRequest, user: User = Depends(get_current_user), db: Session = Depends(get_db)
):
    activity = await run_sync(ActivityService(db).review, user, payload.business_user_id, payload.review)
    return envelope(serialize_activity(activity), "Review submitted successfully.")


@router.post("/book", status_code=201)
async def book_slot(
    payload: BookingRequest, user: User = Depends(get_current_user), db: Session = Depends(get_db)
):
    """Reserve one place in an hourly slot of a destination."""
    result = await run_sync(
        BookingService(db).attempt_booking,
        user,
        payload.business_user_id,
        payload.booking_date,
        payload.booking_time,
    )
    return envelope(result.as_dict(), "Booking successful.")
