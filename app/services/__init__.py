"""Business services orchestrating domain logic."""

from .activity_service import ActivityService
from .admin_service import AdminService
from .auth_service import AuthService
from .booking_service import BookingResult, BookingService
from .chatbot_service import ChatbotService
from .destination_service import DestinationService
from .image_service import ImageService, UploadedFile
from .recommendation_service import RecommendationService
from .subscription_gate import BusinessContext, SubscriptionGate

__all__ = [
    "ActivityService",
    "AdminService",
    "AuthService",
    "BookingResult",
    "BookingService",
    "BusinessContext",
    "ChatbotService",
    "DestinationService",
    "ImageService",
    "RecommendationService",
    "SubscriptionGate",
    "UploadedFile",
]
