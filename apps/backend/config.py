import os
import json
import logging
from typing import List, Optional
from dotenv import load_dotenv

# Load environment variables from .env file
# This ensures credentials are available regardless of import order
load_dotenv()

logger = logging.getLogger(__name__)


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


class Settings:
    def __init__(self):
        # Environment mode
        self.ENVIRONMENT = os.getenv("ENVIRONMENT", "development").lower()
        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
        self.LOG_FILE = os.getenv("LOG_FILE", "").strip() or None

        # Security / Firebase
        self.FIREBASE_CREDENTIALS_PATH = os.getenv("GOOGLE_APPLICATION_CREDENTIALS")
        self.FIREBASE_SERVICE_ACCOUNT_KEY = os.getenv("FIREBASE_SERVICE_ACCOUNT_KEY")
        self.FIREBASE_PROJECT_ID = os.getenv("FIREBASE_PROJECT_ID", "")
        self.FIREBASE_STORAGE_BUCKET = os.getenv("FIREBASE_STORAGE_BUCKET") or (
            f"{self.FIREBASE_PROJECT_ID}.appspot.com" if self.FIREBASE_PROJECT_ID else ""
        )
        self.DEV_UNSAFE_AUTH_BYPASS = _env_bool("DEV_UNSAFE_AUTH_BYPASS")
        self.FIREBASE_READY = False
        self._init_firebase()

        # Session cookie
        self.SESSION_COOKIE_NAME = os.getenv("SESSION_COOKIE_NAME", "__session")
        self.SESSION_MAX_AGE_DAYS = int(os.getenv("SESSION_MAX_AGE_DAYS", "14"))

        # CORS
        # Format: "http://localhost:3000,https://myapp.com"
        allowed_origins_str = os.getenv("ALLOWED_ORIGINS", "http://localhost:3000,http://localhost:5173")
        self.ALLOWED_ORIGINS: List[str] = [origin.strip() for origin in allowed_origins_str.split(",") if origin.strip()]

        # Rate limiting
        self.RATE_LIMIT_GLOBAL = os.getenv("RATE_LIMIT_GLOBAL", "300/minute")
        self.RATE_LIMIT_AI = os.getenv("RATE_LIMIT_AI", "30/minute")

        # Upstream fetches
        self.PROXY_TIMEOUT_SECONDS = float(os.getenv("PROXY_TIMEOUT_SECONDS", "15"))
        self.PROXY_MAX_BYTES = int(os.getenv("PROXY_MAX_BYTES", str(10 * 1024 * 1024)))
        self.SNAPSHOT_TIMEOUT_SECONDS = float(os.getenv("SNAPSHOT_TIMEOUT_SECONDS", "30"))

        # Uploads
        self.PDF_MAX_SIZE_MB = int(os.getenv("PDF_MAX_SIZE_MB", "10"))

        # AI
        self.AI_GATEWAY_API_KEY = os.getenv("AI_GATEWAY_API_KEY", "")
        self.AI_GATEWAY_BASE_URL = os.getenv("AI_GATEWAY_BASE_URL", "https://ai-gateway.vercel.sh/v1").rstrip("/")
        self.OPENAI_BASE_URL = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1").rstrip("/")
        self.ANTHROPIC_BASE_URL = os.getenv("ANTHROPIC_BASE_URL", "https://api.anthropic.com/v1").rstrip("/")
        self.CLI_BRIDGE_URL = os.getenv("CLI_BRIDGE_URL", "http://127.0.0.1:3456").rstrip("/")
        self.AI_REQUEST_TIMEOUT_SECONDS = float(os.getenv("AI_REQUEST_TIMEOUT_SECONDS", "120"))

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT == "development"

    def _load_service_account(self):
        """Resolve service account credentials from an inline key or a file path."""
        from firebase_admin import credentials

        if self.FIREBASE_SERVICE_ACCOUNT_KEY:
            return credentials.Certificate(json.loads(self.FIREBASE_SERVICE_ACCOUNT_KEY))
        if self.FIREBASE_CREDENTIALS_PATH and os.path.exists(self.FIREBASE_CREDENTIALS_PATH):
            return credentials.Certificate(self.FIREBASE_CREDENTIALS_PATH)
        return None

    def _init_firebase(self):
        """Initialize Firebase Admin SDK if credentials available."""
        try:
            import firebase_admin

            if firebase_admin._apps:
                # Already initialized
                self.FIREBASE_READY = True
                return

            cred = self._load_service_account()
            if cred is None:
                if self.ENVIRONMENT == "production":
                    raise ValueError(
                        "CRITICAL: Firebase credentials not found. "
                        "Set GOOGLE_APPLICATION_CREDENTIALS or FIREBASE_SERVICE_ACCOUNT_KEY. "
                        "Firebase is required for production."
                    )
                logger.warning("Firebase credentials not configured (OK for development)")
                self.FIREBASE_READY = False
                return

            options: dict = {}
            if self.FIREBASE_STORAGE_BUCKET:
                options["storageBucket"] = self.FIREBASE_STORAGE_BUCKET
            firebase_admin.initialize_app(cred, options or None)
            self.FIREBASE_READY = True
            logger.info("Firebase Admin SDK initialized")

        except ValueError:
            raise
        except Exception as e:
            logger.error(f"Unexpected error initializing Firebase: {e}")
            self.FIREBASE_READY = False

    def storage_bucket(self) -> Optional[str]:
        return self.FIREBASE_STORAGE_BUCKET or None


settings = Settings()
