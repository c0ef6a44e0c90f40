"""MomCare Configuration Module.

This module handles LLM configuration and environment settings.

Functions:
    configure_gemini: Configure the Gemini client with an API key.
    get_gemini_model: Build a Gemini model for one chat session.
"""
from config.llm import configure_gemini, get_gemini_model, SAFETY_SETTINGS

__all__ = ["configure_gemini", "get_gemini_model", "SAFETY_SETTINGS"]
