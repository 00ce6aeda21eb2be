"""Configuration constants for the CareerCompass AI application."""
import os
from dotenv import load_dotenv

load_dotenv()

# LLM Configuration
# Which backend to use: "gemini" (default) or "ollama"
LLM_PROVIDER = os.getenv("LLM_PROVIDER", "gemini").lower()

# Gemini - the key is read once at process start
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY", "")
GEMINI_MODEL_NAME = os.getenv("GEMINI_MODEL_NAME", "gemini-2.5-flash")

# Ollama (local server)
# To see available models: ollama list
# To pull a model, run: ollama pull <model_name>
OLLAMA_BASE_URL = os.getenv("OLLAMA_BASE_URL", "http://localhost:11434")
OLLAMA_MODEL_NAME = os.getenv("OLLAMA_MODEL_NAME", "llama3")
OLLAMA_TIMEOUT_SECONDS = int(os.getenv("OLLAMA_TIMEOUT_SECONDS", "300"))

# Local key-value storage (stands in for browser local storage)
STORAGE_PATH = os.getenv("STORAGE_PATH", "career_compass.db")
USERS_KEY = "career_compass_users"
SESSION_KEY = "career_compass_session"
BADGES_KEY_PREFIX = "career_compass_badges_"

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Application Configuration
APP_TITLE = "CareerCompass AI"
COACH_NAME = "Compass"

SKILL_LEVELS = ["Beginner", "Intermediate", "Advanced", "Expert"]
DEFAULT_SKILL_LEVEL = "Intermediate"
GAP_IMPORTANCE_LEVELS = ["Critical", "High", "Medium", "Low"]
RESOURCE_TYPES = ["Course", "Project", "Documentation", "Video"]

CHAT_ERROR_MESSAGE = "I'm having trouble connecting right now. Please try again."
ANALYSIS_ERROR_MESSAGE = (
    "We couldn't generate the analysis. Please check your API key or try again later."
)
RESUME_ERROR_MESSAGE = "We couldn't generate resume insights right now. Please try again."
