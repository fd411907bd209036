from fastapi import APIRouter, Depends

from app.core.async_db import run_sync
from app.domain.models import User
from app.domain.models.requests import ProfileUpdateRequest, SubscriptionUpdateRequest
from app.services import BusinessContext

from ..common import envelope, get_auth_service, get_current_user, require_business_subscription

router = APIRouter(tags=["profile"])


@router.put("/profile/edit")
async def edit_profile(
    payload: ProfileUpdateRequest,
    user: User = Depends(get_current_user),
    auth=Depends(get_auth_service),
):
    """Update name/avatar; business users may also update their listing."""
    data = await run_sync(auth.update_profile, user, payload)
    return envelope(data, "Profile updated successfully")


@router.put("/business/profile/edit")
async def edit_business_profile(
    payload: ProfileUpdateRequest,
    business: BusinessContext = Depends(require_business_subscription),
    auth=Depends(get_auth_service),
):
    data = await run_sync(auth.update_profile, business.user, payload)
    return envelope(data, "Business profile updated successfully")


@router.put("/business/subscription/edit")
async def edit_subscription(
    payload: SubscriptionUpdateRequest,
    business: BusinessContext = Depends(require_business_subscription),
    auth=Depends(get_auth_service),
):
    data = await auth.update_subscription(business.user, payload)
    return envelope(data, "Subscription updated successfully")
