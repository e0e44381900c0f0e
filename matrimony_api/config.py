import os
from functools import lru_cache
from pathlib import Path as _Path
from typing import List

from dotenv import load_dotenv as _load_dotenv
from pydantic import BaseModel, Field

# Load .env before any settings are read; real environment variables win
_load_dotenv(dotenv_path=_Path(__file__).resolve().parent.parent / ".env", override=False)


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


class Settings(BaseModel):
    # Support multiple common env var names for Mongo connection string
    mongo_uri: str = Field(
        default_factory=lambda: (
            os.getenv("MONGO_URI")
            or os.getenv("MONGODB_URI")
            or os.getenv("MONGO_URL")
            or ""
        )
    )
    mongo_db: str = Field(default_factory=lambda: os.getenv("MONGO_DB_NAME", "matrimony"))
    # Optional: provide a non-SRV fallback URI (e.g., mongodb://127.0.0.1:27017)
    mongo_alt_uri: str = Field(default_factory=lambda: os.getenv("MONGO_ALT_URI", ""))
    mongo_direct: bool = Field(default_factory=lambda: _env_flag("MONGO_DIRECT"))
    mongo_server_selection_timeout_ms: int = Field(
        default_factory=lambda: int(os.getenv("MONGO_SERVER_SELECTION_TIMEOUT_MS", "3000"))
    )
    mongo_connect_timeout_ms: int = Field(
        default_factory=lambda: int(os.getenv("MONGO_CONNECT_TIMEOUT_MS", "3000"))
    )
    mongo_socket_timeout_ms: int = Field(
        default_factory=lambda: int(os.getenv("MONGO_SOCKET_TIMEOUT_MS", "5000"))
    )

    cors_origins: str = Field(
        default_factory=lambda: os.getenv("CORS_ORIGINS")
        or os.getenv("CORS_ORIGIN")
        or "http://localhost:5173,http://127.0.0.1:5173"
    )
    port: int = Field(default_factory=lambda: int(os.getenv("PORT", "3000")))
    slow_request_ms: int = Field(default_factory=lambda: int(os.getenv("SLOW_REQUEST_MS", "800")))

    # Firebase service account (identity provider)
    firebase_project_id: str = Field(default_factory=lambda: os.getenv("FIREBASE_PROJECT_ID", ""))
    firebase_client_email: str = Field(default_factory=lambda: os.getenv("FIREBASE_CLIENT_EMAIL", ""))
    # Private keys pasted into env files usually carry literal "\n" sequences
    firebase_private_key: str = Field(
        default_factory=lambda: os.getenv("FIREBASE_PRIVATE_KEY", "").replace("\\n", "\n")
    )
    firebase_private_key_id: str = Field(default_factory=lambda: os.getenv("FIREBASE_PRIVATE_KEY_ID", ""))
    firebase_credentials_file: str = Field(default_factory=lambda: os.getenv("FIREBASE_CREDENTIALS_FILE", ""))

    # Cloudinary (image store)
    cloudinary_url: str = Field(default_factory=lambda: os.getenv("CLOUDINARY_URL", ""))
    cloudinary_cloud_name: str = Field(default_factory=lambda: os.getenv("CLOUDINARY_CLOUD_NAME", ""))
    cloudinary_api_key: str = Field(default_factory=lambda: os.getenv("CLOUDINARY_API_KEY", ""))
    cloudinary_api_secret: str = Field(default_factory=lambda: os.getenv("CLOUDINARY_API_SECRET", ""))
    cloudinary_biodata_folder: str = Field(
        default_factory=lambda: os.getenv("CLOUDINARY_BIODATA_FOLDER", "matrimony/biodata")
    )
    max_profile_image_bytes: int = Field(
        default_factory=lambda: int(os.getenv("MAX_PROFILE_IMAGE_BYTES", str(5 * 1024 * 1024)))
    )
    image_upload_timeout_seconds: float = Field(
        default_factory=lambda: float(os.getenv("IMAGE_UPLOAD_TIMEOUT_SECONDS", "20"))
    )

    @property
    def allow_origins(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def cloudinary_configured(self) -> bool:
        if self.cloudinary_url:
            return True
        return bool(self.cloudinary_cloud_name and self.cloudinary_api_key and self.cloudinary_api_secret)

    @property
    def firebase_configured(self) -> bool:
        if self.firebase_credentials_file:
            return True
        return bool(self.firebase_project_id and self.firebase_client_email and self.firebase_private_key)

    def missing_required(self) -> List[str]:
        """Names of the configuration groups the service cannot start without."""

        missing: List[str] = []
        if not self.mongo_uri and not self.mongo_alt_uri:
            missing.append("MONGO_URI")
        if not self.firebase_configured:
            missing.append("FIREBASE_PROJECT_ID/FIREBASE_CLIENT_EMAIL/FIREBASE_PRIVATE_KEY")
        if not self.cloudinary_configured:
            missing.append("CLOUDINARY_URL or CLOUDINARY_CLOUD_NAME/API_KEY/API_SECRET")
        return missing


@lru_cache()
def get_settings() -> Settings:
    return Settings()
