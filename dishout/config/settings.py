import os
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def _env_list(name: str, default: str):
    raw = os.getenv(name, default)
    return [p.strip() for p in raw.split(",") if p.strip()]


class Config:
    """Base configuration class"""

    # Flask settings
    SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')
    MAX_CONTENT_LENGTH = 25 * 1024 * 1024  # 25MB per request

    # Gemini settings (missing key does not stop startup, every analysis fails instead)
    GEMINI_API_KEY = os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY") or os.getenv("GOOGLE_API_KEY") or ""
    DEFAULT_MODEL = os.getenv("DISHOUT_MODEL", "gemini-2.5-flash")

    # Image normalization
    JPEG_QUALITY = 0.85

    # Location settings
    LOCATION_TIMEOUT_S = float(os.getenv("LOCATION_TIMEOUT_S", "10"))
    # Geolocates the caller's IP when no coordinates are posted, e.g. https://ipapi.co/{ip}/json/
    LOCATION_LOOKUP_URL = os.getenv("LOCATION_LOOKUP_URL")

    # AWS settings (uploads and lead tracking are disabled when unset)
    AWS_REGION = os.getenv("AWS_REGION") or os.getenv("AWS_DEFAULT_REGION") or "me-central-1"
    DISH_IMAGE_BUCKET = os.getenv("DISH_IMAGE_BUCKET")
    DISH_IMAGE_PUBLIC_BASE_URL = os.getenv("DISH_IMAGE_PUBLIC_BASE_URL")
    LEADS_TABLE = os.getenv("LEADS_TABLE")

    # Ordering
    WHATSAPP_BASE_URL = "https://wa.me"
    DELIVERY_PROVIDERS = _env_list("DELIVERY_PROVIDERS", "Talabat,Deliveroo,Careem")

    # Background tasks
    BACKGROUND_WORKERS = 4

    # Scan sessions live in process memory (per container under Lambda)
    SCAN_SESSION_TTL_S = float(os.getenv("SCAN_SESSION_TTL_S", "1800"))
    MAX_SCAN_SESSIONS = int(os.getenv("MAX_SCAN_SESSIONS", "1000"))

    @staticmethod
    def init_app(app):
        """Initialize app with configuration"""
        if not app.config.get("GEMINI_API_KEY"):
            app.logger.warning("GEMINI_API_KEY is not set; dish analysis calls will fail")


class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True


class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False


class TestingConfig(Config):
    """Testing configuration"""
    TESTING = True
    GEMINI_API_KEY = "test-key"
    LOCATION_LOOKUP_URL = None
    DISH_IMAGE_BUCKET = None
    LEADS_TABLE = None
    DELIVERY_PROVIDERS = ["Talabat", "Deliveroo", "Careem"]


# Configuration dictionary
config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}
