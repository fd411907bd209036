"""Travel chatbot: resolve what the user asks about, then answer with context."""
from __future__ import annotations

import json
import logging
import re
from difflib import SequenceMatcher

from sqlalchemy.orm import Session

from app.core.async_db import run_sync
from app.core.exceptions import NotFoundException
from app.integrations.text_generation import TextGenerator
from app.repositories import BusinessRepository, UserRepository

from .destination_service import DestinationService
from .recommendation_service import RecommendationService

logger = logging.getLogger(__name__)

SIMILARITY_THRESHOLD = 80.0
RECOMMEND_KEYWORDS = ("recommend", "suggest")
FALLBACK_REPLY = "I'm sorry, I couldn't process your request."

CHATBOT_SYSTEM_PROMPT = (
    "You are a travel assistant chatbot that helps users find specific destinations "
    "(by name, category, or district) or get personalized recommendations based on "
    "their preferences. Only respond to destination-related requests and politely "
    "guide users back to travel topics if they ask unrelated questions."
)


def similarity_percent(a: str, b: str) -> float:
    return SequenceMatcher(None, a.lower(), b.lower()).ratio() * 100


def match_business_name(message: str, names: list[tuple[int, str]]) -> int | None:
    """Business user id whose name the message refers to, if any.

    Substring containment wins outright; otherwise the best similarity score
    must exceed the threshold.
    """
    lowered = message.lower()
    for user_id, name in names:
        if name and name.lower() in lowered:
            return user_id

    best_id, best_score = None, 0.0
    for user_id, name in names:
        if not name:
            continue
        score = similarity_percent(message, name)
        if score > best_score:
            best_id, best_score = user_id, score
    if best_score > SIMILARITY_THRESHOLD:
        return best_id
    return None


def _summarize(destinations: list[dict], limit: int = 5) -> str:
    rows = [
        {
            "name": d["business_name"],
            "category": d.get("category_name"),
            "district": d.get("district"),
            "hours": f"{d.get('opening_hour')}-{d.get('closing_hour')}",
            "rating": d.get("rating"),
        }
        for d in destinations[:limit]
    ]
    return json.dumps(rows)


class ChatbotService:
    """Answer free-text questions about destinations."""

    def __init__(self, session: Session, generator: TextGenerator) -> None:
        self.session = session
        self.generator = generator
        self.businesses = BusinessRepository(session)
        self.users = UserRepository(session)
        self.destinations = DestinationService(session)
        self.recommendations = RecommendationService(session, generator)

    def _by_term(self, term: str) -> list[dict]:
        """Destinations whose name, then district, contains the extracted term."""
        found = self.destinations.by_name(term)
        if found:
            return found
        return self.destinations.by_district(term)

    async def _resolve_term(self, term: str) -> list[dict]:
        found = await run_sync(self._by_term, term)
        if found:
            return found

        categories = [c["name"] for c in await run_sync(self.destinations.list_categories)]
        category = await self.generator.classify(term, categories)
        if category is None:
            return []
        return await run_sync(self.destinations.by_category_names, [category])

    async def find_destinations(self, message: str) -> list[dict]:
        names = await run_sync(self.businesses.business_names)
        matched_id = match_business_name(message, names)
        if matched_id is not None:
            return [await run_sync(self.destinations.by_user_id, matched_id)]

        term = await self.generator.extract(message)
        if term is None:
            return []
        logger.debug(f"Chatbot extracted term {term!r}")
        return await self._resolve_term(term)

    async def _recommended(self, user_id: int) -> list[dict]:
        try:
            result = await self.recommendations.recommend(user_id)
        except NotFoundException:
            return []
        return result["destinations"]

    async def reply(self, user_id: int, message: str) -> dict:
        await run_sync(self.users.get_user_or_raise, user_id)
        if any(re.search(rf"\b{word}", message, re.IGNORECASE) for word in RECOMMEND_KEYWORDS):
            destinations = await self._recommended(user_id)
        else:
            destinations = await self.find_destinations(message)

        if destinations:
            prompt = (
                f"User question: {message}\n\n"
                f"Matching destinations from our directory: {_summarize(destinations)}"
            )
        else:
            prompt = (
                f"User question: {message}\n\n"
                "No matching destinations were found in our directory."
            )
        response = await self.generator.respond(prompt, system=CHATBOT_SYSTEM_PROMPT, max_tokens=150)
        return {"response": response or FALLBACK_REPLY, "destinations": destinations}
