"""
Reader AI - Configuration
Provider endpoints, limits, paths and feature constants
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# =============================================================================
# PATHS
# =============================================================================
PROJECT_ROOT = Path(__file__).parent
DATA_DIR = Path(os.getenv("READER_AI_DATA_DIR", str(PROJECT_ROOT / "data")))
LOGS_DIR = Path(os.getenv("READER_AI_LOGS_DIR", str(PROJECT_ROOT / "logs")))
DATABASE_PATH = DATA_DIR / "reader_ai.db"
DIAGNOSTIC_LOG_PATH = LOGS_DIR / "diagnostic.log"

# =============================================================================
# VERSION
# =============================================================================
VERSION = "0.1.0"
PROJECT_NAME = "Reader AI"

# =============================================================================
# PROVIDER SELECTION
# =============================================================================
# One of: deepseek, glm, gemini (case-insensitive)
AI_PROVIDER = os.getenv("AI_PROVIDER", "deepseek")
AI_API_KEY = os.getenv("AI_API_KEY", "")

# =============================================================================
# PROVIDER ENDPOINTS
# =============================================================================
# DeepSeek (OpenAI-style chat completion, bearer token)
DEEPSEEK_API_URL = os.getenv("DEEPSEEK_API_URL", "https://api.deepseek.com/v1/chat/completions")
DEEPSEEK_MODEL = os.getenv("DEEPSEEK_MODEL", "deepseek-chat")
DEEPSEEK_HELP_URL = "https://platform.deepseek.com/"

# GLM / Zhipu (OpenAI-style chat completion, bearer token)
GLM_API_URL = os.getenv("GLM_API_URL", "https://open.bigmodel.cn/api/paas/v4/chat/completions")
GLM_MODEL = os.getenv("GLM_MODEL", "glm-4-flash")
GLM_HELP_URL = "https://open.bigmodel.cn/"

# Gemini (candidates/parts envelope, API key in the query string)
GEMINI_API_URL = os.getenv(
    "GEMINI_API_URL",
    "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"
)
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-1.5-flash")
GEMINI_HELP_URL = "https://ai.google.dev/"

# =============================================================================
# REQUEST TUNING
# =============================================================================
# Generation is slow, so the read timeout is twice the connect timeout.
AI_CONNECT_TIMEOUT = float(os.getenv("AI_CONNECT_TIMEOUT", "30"))
AI_READ_TIMEOUT = float(os.getenv("AI_READ_TIMEOUT", "60"))
AI_TEMPERATURE = float(os.getenv("AI_TEMPERATURE", "0.7"))
AI_MAX_TOKENS = int(os.getenv("AI_MAX_TOKENS", "500"))

# =============================================================================
# SUMMARIES
# =============================================================================
# Maximum characters of cleaned chapter text sent to a provider
SUMMARY_CONTENT_LIMIT = int(os.getenv("SUMMARY_CONTENT_LIMIT", "3000"))
SUMMARY_MIN_CHARS = 100
SUMMARY_MAX_CHARS = 200

# =============================================================================
# RECOMMENDATIONS / CHAT
# =============================================================================
RECOMMENDATION_COUNT = 5
RECOMMENDATION_REASON_MAX_CHARS = 50

# Fixed key of the persisted chat transcript blob
CHAT_HISTORY_KEY = "ai_book_search_chat_history"

WELCOME_MESSAGE = """Hi! I'm your AI book-finding assistant.

Tell me what kind of book you feel like reading and I'll suggest some titles.

For example:
- I want a fantasy novel with a slow-burn progression system
- Recommend some fast-paced urban thrillers
- Any good alternate-history stories?"""

NO_RECOMMENDATIONS_MESSAGE = (
    "I couldn't find any books matching that request. "
    "Try describing the story, genre or mood a little differently."
)

RECOMMENDATION_ERROR_TEMPLATE = (
    "Sorry, the recommendation failed: {error}\n\n"
    "Please check your network connection or API configuration, then try again."
)

# =============================================================================
# CONCURRENCY
# =============================================================================
WORKER_POOL_SIZE = int(os.getenv("WORKER_POOL_SIZE", "4"))

# =============================================================================
# DATABASE CONFIGURATION
# =============================================================================
DB_BUSY_TIMEOUT_MS = 10000

# =============================================================================
# HTTP API
# =============================================================================
HTTP_API_HOST = os.getenv("HTTP_API_HOST", "127.0.0.1")
HTTP_API_PORT = int(os.getenv("HTTP_API_PORT", "5000"))

# =============================================================================
# LOGGING CONFIGURATION
# =============================================================================
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_TO_FILE = True
LOG_TO_CONSOLE = True
