from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.orm import Session

from app.core.async_db import run_sync
from app.domain.models import User
from app.domain.models.requests import ImageDeleteRequest, UserIdRequest
from app.repositories import UserRepository
from app.services import ActivityService, AdminService, BookingService, DestinationService, UploadedFile
from app.services.auth_service import serialize_user

from ..common import (
    envelope,
    get_current_user,
    get_db,
    get_image_service,
    require_admin,
    require_owner_or_admin,
)

router = APIRouter(tags=["users"])


@router.get("/user/check-rated/{business_user_id}")
async def check_rated(
    business_user_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)
):
    data = await run_sync(ActivityService(db).check_rated, user, business_user_id)
    return envelope(data, "Rating status retrieved")


@router.get("/user/{user_id}/bookings")
async def user_bookings(user_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    require_owner_or_admin(user_id, user)
    data = await run_sync(BookingService(db).list_user_bookings, user_id)
    return envelope(data, "Bookings retrieved successfully")


@router.get("/user/{user_id}/saved")
async def user_saved(user_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    require_owner_or_admin(user_id, user)
    data = await run_sync(DestinationService(db).saved_for_user, user_id)
    return envelope(data, "Saved destinations retrieved successfully")


# Images


async def _image_owner(user_id: int, user: User, db: Session) -> User:
    require_owner_or_admin(user_id, user)
    if user.id == user_id:
        return user
    return await run_sync(UserRepository(db).get_user_or_raise, user_id)


@router.get("/users/{user_id}/images")
async def list_images(
    user_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    images=Depends(get_image_service),
):
    owner = await _image_owner(user_id, user, db)
    data = await run_sync(images.list_images, owner)
    return envelope(data, "Images retrieved successfully")


@router.post("/users/{user_id}/images", status_code=202)
async def upload_images(
    user_id: int,
    files: list[UploadFile] = File(..., alias="images"),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    images=Depends(get_image_service),
):
    """Accept images now; the worker moves them to permanent storage."""
    owner = await _image_owner(user_id, user, db)
    uploads = [UploadedFile(filename=f.filename or "image", content=await f.read()) for f in files]
    data = await images.upload(owner, uploads)
    return envelope(data, "Images are being processed")


@router.delete("/users/{user_id}/images", status_code=202)
async def delete_images(
    user_id: int,
    payload: ImageDeleteRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    images=Depends(get_image_service),
):
    owner = await _image_owner(user_id, user, db)
    ids = await images.delete(owner, payload.image_ids)
    return envelope({"image_ids": ids}, "Images are being deleted")


# Moderation


@router.post("/users/ban")
async def ban_user(payload: UserIdRequest, admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    user = await run_sync(AdminService(db).ban, admin, payload.user_id)
    return envelope(serialize_user(user), "User banned successfully.")


@router.post("/users/unban")
async def unban_user(payload: UserIdRequest, admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    user = await run_sync(AdminService(db).unban, admin, payload.user_id)
    return envelope(serialize_user(user), "User unbanned successfully.")
