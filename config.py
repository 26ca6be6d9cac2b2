import os
import logging
from dotenv import load_dotenv

# Load environment variables from .env file for local development
load_dotenv()

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

class Config:
    """Environment settings for the newsletter service, checked once at import."""
    # --- Supabase (Required) ---
    SUPABASE_URL = os.getenv("SUPABASE_URL")
    SUPABASE_SERVICE_KEY = os.getenv("SUPABASE_SERVICE_KEY")

    # --- OpenAI (Required) ---
    OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
    OPENAI_TEXT_MODEL = os.getenv("OPENAI_TEXT_MODEL", "gpt-4o-mini")
    OPENAI_IMAGE_MODEL = os.getenv("OPENAI_IMAGE_MODEL", "dall-e-3")
    IMAGE_SIZE = os.getenv("IMAGE_SIZE", "1024x1024")

    # --- Brevo transactional email (Required) ---
    BREVO_API_KEY = os.getenv("BREVO_API_KEY")
    BREVO_API_URL = os.getenv("BREVO_API_URL", "https://api.brevo.com/v3/smtp/email")
    BREVO_SENDER_EMAIL = os.getenv("BREVO_SENDER_EMAIL")
    BREVO_SENDER_NAME = os.getenv("BREVO_SENDER_NAME", "Newsletter Generator")

    # --- Server Configuration ---
    ENVIRONMENT = os.getenv("ENVIRONMENT", "production")
    PORT = int(os.getenv("PORT", "8000"))
    HOST = os.getenv("HOST", "0.0.0.0")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "info")
    # Public URL of the frontend, used for "view online" links in emails
    BASE_URL = os.getenv("BASE_URL", "").rstrip("/")

    # --- Security ---
    ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "").strip()

    # --- Contact list handling ---
    CSV_FILE_SIZE_LIMIT = int(os.getenv("CSV_FILE_SIZE_LIMIT", str(5 * 1024 * 1024)))  # 5MB default
    CONTACT_BATCH_SIZE = int(os.getenv("CONTACT_BATCH_SIZE", "100"))

    # --- Concurrency & Timeouts ---
    EMAIL_MAX_WORKERS = int(os.getenv("EMAIL_MAX_WORKERS", "10"))
    IMAGE_MAX_WORKERS = int(os.getenv("IMAGE_MAX_WORKERS", "3"))
    REQUEST_TIMEOUT = int(os.getenv("REQUEST_TIMEOUT", "300"))
    EMAIL_TIMEOUT = int(os.getenv("EMAIL_TIMEOUT", "30"))

    REQUIRED = (
        "SUPABASE_URL",
        "SUPABASE_SERVICE_KEY",
        "OPENAI_API_KEY",
        "BREVO_API_KEY",
        "BREVO_SENDER_EMAIL",
    )

    @classmethod
    def validate(cls):
        """Raise ValueError naming every required setting that is empty."""
        unset = [name for name in cls.REQUIRED if not getattr(cls, name)]
        if unset:
            message = f"❌ Newsletter service cannot start, set: {', '.join(unset)}"
            logger.error(message)
            raise ValueError(message)

        if cls.ENVIRONMENT == "production":
            if cls.ALLOWED_ORIGINS in ("", "*"):
                logger.warning("⚠️  ALLOWED_ORIGINS is empty or '*', any site can call the API")
            if not cls.BASE_URL:
                logger.warning("⚠️  BASE_URL is empty, emails go out without a 'view online' link")

        logger.info(
            f"✅ Config loaded ({cls.ENVIRONMENT}): text={cls.OPENAI_TEXT_MODEL} "
            f"image={cls.OPENAI_IMAGE_MODEL} batch={cls.CONTACT_BATCH_SIZE}"
        )
        return True

    @classmethod
    def get_cors_origins(cls):
        origins = [o.strip() for o in cls.ALLOWED_ORIGINS.split(",") if o.strip() and o.strip() != "*"]
        if not origins and cls.ENVIRONMENT == "production":
            logger.warning("⚠️  No CORS origins configured, falling back to '*'")
        return origins or ["*"]

config = Config()

try:
    config.validate()
except ValueError as e:
    raise SystemExit(f"Configuration error: {e}")
