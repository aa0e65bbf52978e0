# writique/config.py
import os
from pydantic import BaseModel
from dotenv import load_dotenv

load_dotenv()  # Load environment variables from .env file


def _csv(name: str, default: str = "") -> list[str]:
    """Split a comma-separated environment variable into a clean list."""
    raw = os.getenv(name, default)
    return [item.strip() for item in raw.split(",") if item.strip()]


class Settings(BaseModel):
    # General app settings
    APP_NAME: str = "Writique API"
    env: str = os.getenv("ENV", "dev")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    # Host & Port settings
    host: str = os.getenv("HOST", "0.0.0.0")
    port: int = int(os.getenv("PORT", "8000"))

    # CORS origins for frontend
    CORS_ORIGINS: list[str] = _csv(
        "CORS_ORIGINS",
        "http://localhost:5173,http://127.0.0.1:5173,http://localhost:3000,http://127.0.0.1:3000",
    )

    # Clerk (identity provider)
    clerk_secret_key: str | None = os.getenv("CLERK_SECRET_KEY")
    clerk_webhook_secret: str | None = os.getenv("CLERK_WEBHOOK_SECRET")
    clerk_api_url: str = os.getenv("CLERK_API_URL", "https://api.clerk.com/v1").rstrip("/")
    clerk_jwks_url: str = os.getenv("CLERK_JWKS_URL", "https://api.clerk.com/v1/jwks")
    # Allowed values for the `azp` claim; empty means any origin is accepted
    clerk_authorized_parties: list[str] = _csv("CLERK_AUTHORIZED_PARTIES")
    identity_timeout_seconds: float = float(os.getenv("IDENTITY_TIMEOUT_SECONDS", "10"))

    # External subject ids that are provisioned (or promoted) as admin
    bootstrap_admin_ids: list[str] = _csv("BOOTSTRAP_ADMIN_IDS")

    # Cloudinary (media relay)
    cloudinary_cloud_name: str | None = os.getenv("CLOUDINARY_CLOUD_NAME")
    cloudinary_api_key: str | None = os.getenv("CLOUDINARY_API_KEY")
    cloudinary_api_secret: str | None = os.getenv("CLOUDINARY_API_SECRET")
    cloudinary_folder: str = os.getenv("CLOUDINARY_FOLDER", "writique_blogs")
    media_upload_timeout_seconds: float = float(os.getenv("MEDIA_UPLOAD_TIMEOUT_SECONDS", "30"))

    # Posts
    max_upload_bytes: int = int(float(os.getenv("MAX_UPLOAD_MB", "10")) * 1024 * 1024)
    default_post_image_url: str = os.getenv(
        "DEFAULT_POST_IMAGE_URL",
        "https://images.unsplash.com/photo-1674027444485-cec3da58eef4?q=80&w=1932&auto=format&fit=crop",
    )
    default_avatar_url: str = os.getenv("DEFAULT_AVATAR_URL", "https://i.pravatar.cc/150?img=1")

    def missing_required(self) -> list[str]:
        """Names of the environment variables the API cannot start without."""
        required = {
            "CLERK_SECRET_KEY": self.clerk_secret_key,
            "CLERK_WEBHOOK_SECRET": self.clerk_webhook_secret,
        }
        return [name for name, value in required.items() if not value]


settings = Settings()  # Instantiate configuration
