import os
from dotenv import load_dotenv

load_dotenv()

# LLM endpoint (any OpenAI-compatible chat completions API)
LLM_API_KEY = os.getenv("LLM_API_KEY", os.getenv("OPENAI_API_KEY", ""))
LLM_BASE_URL = os.getenv("LLM_BASE_URL") or None  # None -> api.openai.com

# Model + sampling settings per call
ANALYSIS_MODEL = os.getenv("ANALYSIS_MODEL", "gpt-4.1")
ANALYSIS_TEMPERATURE = float(os.getenv("ANALYSIS_TEMPERATURE", "0.3"))
ANALYSIS_MAX_TOKENS = int(os.getenv("ANALYSIS_MAX_TOKENS", "4096"))

CHAT_MODEL = os.getenv("CHAT_MODEL", "gpt-4.1")
CHAT_TEMPERATURE = float(os.getenv("CHAT_TEMPERATURE", "0.7"))
CHAT_MAX_TOKENS = int(os.getenv("CHAT_MAX_TOKENS", "2048"))

CLEANUP_MODEL = os.getenv("CLEANUP_MODEL", "gpt-4o-mini")
CLEANUP_TEMPERATURE = float(os.getenv("CLEANUP_TEMPERATURE", "0.3"))
CLEANUP_MAX_TOKENS = int(os.getenv("CLEANUP_MAX_TOKENS", "500"))

# Interviewer exclusion. First entry is the canonical full name.
EXCLUDED_SPEAKER_ALIASES = [
    alias.strip()
    for alias in os.getenv("EXCLUDED_SPEAKER_ALIASES", "Jamie Horton,Jamie,Horton").split(",")
    if alias.strip()
]

# Storage settings
DATA_DIR = os.getenv("DATA_DIR", os.path.join(os.path.dirname(__file__), "..", "..", "data"))

# HTTP server
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "8000"))
CORS_ORIGINS = [origin.strip() for origin in os.getenv("CORS_ORIGINS", "*").split(",") if origin.strip()]

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LLM_DEBUG_LOG = os.getenv("LLM_DEBUG_LOG", "")  # file path; empty disables raw prompt/response logging

# Auth e-mail (Resend)
RESEND_API_KEY = os.getenv("RESEND_API_KEY", "")
RESEND_API_URL = os.getenv("RESEND_API_URL", "https://api.resend.com/emails")
EMAIL_FROM = os.getenv("EMAIL_FROM", "TranscriptIQ <no-reply@transcriptiq.app>")
APP_BASE_URL = os.getenv("APP_BASE_URL", "http://localhost:3000")
