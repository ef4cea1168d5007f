"""
Application configuration read from environment variables.

Values are resolved once at import time. The Gemini API key is the only
required setting; its absence is reported when the application starts
(see GeminiFeedbackClient), not on every request.
"""

import os

# ──────────────────────────────────────────────────────────────
# Generative-text service
# ──────────────────────────────────────────────────────────────
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY")
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-1.5-flash")
GEMINI_BASE_URL = os.getenv(
    "GEMINI_BASE_URL",
    "https://generativelanguage.googleapis.com/v1beta"
)

# Upper bound (seconds) on the single model call per feedback request
LLM_TIMEOUT = float(os.getenv("LLM_TIMEOUT", "30"))

# Provenance label stored on every generated Feedback row
FEEDBACK_PROVIDER = os.getenv("FEEDBACK_PROVIDER", "Gemini API")

# ──────────────────────────────────────────────────────────────
# HTTP
# ──────────────────────────────────────────────────────────────
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "*").split(",")
    if origin.strip()
]
