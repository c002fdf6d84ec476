# fabtrack/config.py
import os
from pydantic_settings import BaseSettings
from dotenv import load_dotenv
import logging

# Load variables from .env file located in the project root directory
dotenv_path = os.path.join(os.path.dirname(os.path.dirname(__file__)), '.env')
if os.path.exists(dotenv_path):
    load_dotenv(dotenv_path=dotenv_path)
else:
    load_dotenv() # Fallback

class Settings(BaseSettings):
    """Loads configuration settings from environment variables and .env file."""

    # --- Backend REST API ---
    API_BASE_URL: str = "http://localhost:5000/api"
    HTTP_TIMEOUT: float = float(os.getenv("HTTP_TIMEOUT", 30.0))
    UPLOAD_TIMEOUT: float = float(os.getenv("UPLOAD_TIMEOUT", 300.0)) # Multipart uploads may be large

    # --- Upload Staging ---
    # Advisory only, the backend is the authority on limits
    UPLOAD_SIZE_HINT_MB: int = int(os.getenv("UPLOAD_SIZE_HINT_MB", 50))

    # --- Object URLs (local preview resources) ---
    OBJECT_URL_PREFIX: str = "/objects"

    # --- UI Service ---
    UI_MOUNT_PATH: str = "/ui"

    class Config:
        env_file = '.env'
        env_file_encoding = 'utf-8'
        extra = 'ignore'

# Instantiate settings once for import
settings = Settings()

# --- Logging Setup ---
log_level_str = os.getenv("LOG_LEVEL", "INFO").upper(); log_level = getattr(logging, log_level_str, logging.INFO)
logging.basicConfig(level=log_level, format='%(asctime)s - %(name)s - [%(levelname)s] - %(message)s', datefmt='%Y-%m-%d %H:%M:%S')
logger = logging.getLogger("FabTrack_Core")
logging.getLogger("httpx").setLevel(logging.WARNING); logging.getLogger("gradio").setLevel(logging.WARNING)
logging.getLogger("watchfiles").setLevel(logging.WARNING)

# --- Configuration Validation Checks ---
logger.info(f"Core Settings loaded. Log Level: {log_level_str}")
if not settings.API_BASE_URL: logger.warning("API_BASE_URL missing. All backend calls will fail.")
else: logger.info(f"Using backend API at: {settings.API_BASE_URL}")
if not settings.OBJECT_URL_PREFIX.startswith("/"): logger.warning(f"OBJECT_URL_PREFIX '{settings.OBJECT_URL_PREFIX}' should start with '/'.")

try: assert settings.HTTP_TIMEOUT > 0 and settings.UPLOAD_TIMEOUT > 0; logger.info(f"HTTP timeouts: default={settings.HTTP_TIMEOUT}s, upload={settings.UPLOAD_TIMEOUT}s")
except AssertionError: logger.error(f"Invalid HTTP timeouts: HTTP_TIMEOUT={settings.HTTP_TIMEOUT}, UPLOAD_TIMEOUT={settings.UPLOAD_TIMEOUT}.")
logger.info(f"Upload Config: advisory size limit={settings.UPLOAD_SIZE_HINT_MB}MB per file")
