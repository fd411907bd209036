"""Recommendation bridge: activity history -> categories -> destinations."""
from __future__ import annotations

import json
import logging
import re

from sqlalchemy.orm import Session

from app.core.async_db import run_sync
from app.core.exceptions import NotFoundException, UpstreamException
from app.integrations.text_generation import TextGenerator
from app.repositories import ActivityRepository

from .destination_service import DestinationService

logger = logging.getLogger(__name__)

LIST_MARKER = re.compile(r"^\s*(?:[-*•]|\d+[.)])\s+")

RECOMMEND_PROMPT = (
    "Analyze the following user activities and recommend the most liked categories "
    "based on the user's saves, ratings and reviews. Format the response as category "
    "names under each other only.\n\n{activities}"
)


def parse_category_lines(text: str) -> list[str]:
    """One category per line; list markers stripped, blanks dropped."""
    categories: list[str] = []
    for line in text.splitlines():
        cleaned = LIST_MARKER.sub("", line).strip()
        if cleaned and cleaned not in categories:
            categories.append(cleaned)
    return categories


class RecommendationService:
    """Recommend destinations from a user's engagement history."""

    def __init__(self, session: Session, generator: TextGenerator) -> None:
        self.activities = ActivityRepository(session)
        self.destinations = DestinationService(session)
        self.generator = generator

    def activity_summary(self, user_id: int) -> list[dict]:
        return [
            {
                "type": activity.activity_type,
                "value": activity.activity_value,
                "category": activity.category,
            }
            for activity in self.activities.list_for_user(user_id)
        ]

    async def recommend_categories(self, user_id: int) -> list[str]:
        """Ask the generator which categories the user engages with most.

        Raises:
            NotFoundException: User has no activities
            UpstreamException: Generator failed or returned nothing usable
        """
        summary = await run_sync(self.activity_summary, user_id)
        if not summary:
            raise NotFoundException("No activities found for this user.")

        prompt = RECOMMEND_PROMPT.format(activities=json.dumps(summary))
        text = await self.generator.respond(prompt, max_tokens=100)
        categories = parse_category_lines(text)
        if not categories:
            raise UpstreamException("Could not generate recommendations.")
        logger.info(f"Recommended categories for user {user_id}: {categories}")
        return categories

    async def recommend(self, user_id: int) -> dict:
        categories = await self.recommend_categories(user_id)
        destinations = await run_sync(
            self.destinations.by_category_names, categories, random_order=True
        )
        return {"categories": categories, "destinations": destinations}
