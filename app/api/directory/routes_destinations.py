from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.async_db import run_sync
from app.services import DestinationService

from ..common import envelope, get_db

router = APIRouter(tags=["destinations"])


@router.get("/categories")
async def list_categories(db: Session = Depends(get_db)):
    data = await run_sync(DestinationService(db).list_categories)
    return envelope(data, "Categories retrieved successfully")


@router.get("/destinations")
async def list_destinations(db: Session = Depends(get_db)):
    """Destinations of active (non-banned) businesses."""
    data = await run_sync(DestinationService(db).list_active)
    return envelope(data, "Destinations retrieved successfully")


@router.get("/destinations/grouped")
async def grouped_destinations(db: Session = Depends(get_db)):
    data = await run_sync(DestinationService(db).grouped_by_status)
    return envelope(data, "Destinations retrieved successfully")


@router.get("/destinations/name/{name}")
async def destinations_by_name(name: str, db: Session = Depends(get_db)):
    data = await run_sync(DestinationService(db).by_name, name)
    return envelope(data, "Destinations retrieved successfully")


@router.get("/destinations/category/{category}")
async def destinations_by_category(category: str, db: Session = Depends(get_db)):
    data = await run_sync(DestinationService(db).by_category, category)
    return envelope(data, "Destinations retrieved successfully")


@router.get("/destinations/district/{district}")
async def destinations_by_district(district: str, db: Session = Depends(get_db)):
    data = await run_sync(DestinationService(db).by_district, district)
    return envelope(data, "Destinations retrieved successfully")


@router.get("/destinations/bookings/{business_user_id}")
async def destination_bookings(business_user_id: int, db: Session = Depends(get_db)):
    data = await run_sync(DestinationService(db).bookings_for_business, business_user_id)
    return envelope(data, "Bookings retrieved successfully")


@router.get("/destinations/reviews/{business_user_id}")
async def destination_reviews(business_user_id: int, db: Session = Depends(get_db)):
    data = await run_sync(DestinationService(db).reviews_for_business, business_user_id)
    return envelope(data, "Reviews retrieved successfully")


@router.get("/destinations/rating/{business_user_id}")
async def destination_rating(business_user_id: int, db: Session = Depends(get_db)):
    data = await run_sync(DestinationService(db).rating_for_business, business_user_id)
    return envelope(data, "Rating retrieved successfully")


@router.get("/destinations/{business_user_id}")
async def destination_detail(business_user_id: int, db: Session = Depends(get_db)):
    data = await run_sync(DestinationService(db).by_user_id, business_user_id)
    return envelope(data, "Destination retrieved successfully")
