from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from app.domain.models.requests import ChatbotRequest
from app.services import ChatbotService, RecommendationService

from ..common import envelope, get_db
from ..rate_limit import AI_LIMIT, limiter

router = APIRouter(tags=["ai"])


def get_text_generator(request: Request):
    return request.app.state.text_generator


@router.get("/recommend-destinations/{user_id}")
@limiter.limit(AI_LIMIT)
async def recommend_destinations(
    request: Request, user_id: int, db: Session = Depends(get_db), generator=Depends(get_text_generator)
):
    """Destinations in the categories the user engages with most."""
    data = await RecommendationService(db, generator).recommend(user_id)
    return envelope(data, "Recommended destinations retrieved successfully")


@router.post("/{user_id}/chatbot")
@limiter.limit(AI_LIMIT)
async def chatbot(
    request: Request,
    user_id: int,
    payload: ChatbotRequest,
    db: Session = Depends(get_db),
    generator=Depends(get_text_generator),
):
    data = await ChatbotService(db, generator).reply(user_id, payload.message)
    return envelope(data, "Chatbot response generated")
