"""LLM Configuration for MomCare Chat.

This module handles Gemini model initialization with appropriate safety settings.
"""
import logging
from typing import Optional

import google.generativeai as genai

from config.settings import GEMINI_MODEL_NAME, GENERATION_CONFIG

logger = logging.getLogger(__name__)

# Pregnancy topics are sensitive but legitimate; only block high-probability harm,
# except explicit content which is held to a stricter threshold.
SAFETY_SETTINGS = [
    {"category": "HARM_CATEGORY_HARASSMENT", "threshold": "BLOCK_ONLY_HIGH"},
    {"category": "HARM_CATEGORY_HATE_SPEECH", "threshold": "BLOCK_ONLY_HIGH"},
    {"category": "HARM_CATEGORY_SEXUALLY_EXPLICIT", "threshold": "BLOCK_MEDIUM_AND_ABOVE"},
    {"category": "HARM_CATEGORY_DANGEROUS_CONTENT", "threshold": "BLOCK_ONLY_HIGH"},
]


def configure_gemini(api_key: Optional[str]) -> bool:
    """
    Configures the Gemini client with the given API key.

    Returns:
        True if the client was configured, False if the key is missing.
    """
    if not api_key:
        logger.warning("GOOGLE_API_KEY not set. Chat sessions cannot be opened.")
        return False

    genai.configure(api_key=api_key)
    return True


def get_gemini_model(system_instruction: Optional[str] = None,
                     model_name: str = GEMINI_MODEL_NAME):
    """
    Returns a Gemini model instance for one chat session.

    Args:
        system_instruction: Out-of-band system prompt for the session.
        model_name: Gemini model to use (default: settings.GEMINI_MODEL_NAME)

    Returns:
        GenerativeModel instance.
    """
    return genai.GenerativeModel(
        model_name=model_name,
        generation_config=GENERATION_CONFIG,
        safety_settings=SAFETY_SETTINGS,
        system_instruction=system_instruction,
    )
