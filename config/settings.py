"""Central Configuration for MomCare Chat."""
import os
from pathlib import Path
from dotenv import load_dotenv

# Base Directory (Root of the project)
BASE_DIR = Path(__file__).resolve().parent.parent

# Load Environment Variables
load_dotenv(BASE_DIR / ".env")

# LLM Settings
GOOGLE_API_KEY = os.getenv("GOOGLE_API_KEY") or os.getenv("GEMINI_API_KEY")
GEMINI_MODEL_NAME = os.getenv("GEMINI_MODEL_NAME", "gemini-2.0-flash")

GENERATION_CONFIG = {
    "temperature": 0.7,
    "top_k": 40,
    "top_p": 0.95,
    "max_output_tokens": 2048,
}

# Attachment Settings (inline image data accepted by the provider)
MAX_ATTACHMENT_BYTES = 4 * 1024 * 1024

# Context Engine Settings
MEMORY_EXCERPT_LIMIT = 3
MEMORY_EXCERPT_CHARS = 100
MAX_UPCOMING_APPOINTMENTS = 3

# Session Settings
MAX_CONSECUTIVE_BLOCKS = 3
