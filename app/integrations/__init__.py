"""Integrations package - clients for external services."""

from app.integrations.payment_service import PaymentProcessor, PaymentResult, StripePaymentProcessor
from app.integrations.text_generation import OpenAITextGenerator, TextGenerator

__all__ = [
    "OpenAITextGenerator",
    "PaymentProcessor",
    "PaymentResult",
    "StripePaymentProcessor",
    "TextGenerator",
]
