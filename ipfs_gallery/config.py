"""
Configuration Settings
Environment variables and application settings
"""

from pydantic_settings import BaseSettings
from typing import Optional

class Settings(BaseSettings):
    # Environment
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # CORS
    ALLOWED_ORIGINS: str = "*"

    # Interactive API docs (/api/docs)
    ENABLE_DOCS: bool = False

    # Cloudflare account + IPFS pinning
    CF_ACCOUNT_ID: str = ""
    CF_API_TOKEN: str = ""
    CF_API_BASE_URL: str = "https://api.cloudflare.com/client/v4"
    VERIFY_API_TOKEN: bool = True
    PIN_CLIENT_NAME: str = "worker-ipfs-gallery"
    PIN_TIMEOUT_SECONDS: float = 120.0

    # Public gateway, {cid} is substituted
    GATEWAY_URL_TEMPLATE: str = "https://{cid}.ipfs.cf-ipfs.com"

    # Upload limit (0 = unlimited)
    MAX_UPLOAD_BYTES: int = 100 * 1024 * 1024  # 100MB

    # Catalog
    CATALOG_FETCH_CONCURRENCY: int = 16

    # Metadata store: memory | mongodb | r2 | kv
    METADATA_BACKEND: str = "memory"

    # MongoDB
    MONGODB_URL: Optional[str] = None
    DATABASE_NAME: str = "ipfs_gallery"
    MONGODB_COLLECTION: str = "catalog"

    # Cloudflare R2 Settings
    R2_ACCOUNT_ID: Optional[str] = None
    R2_ACCESS_KEY: Optional[str] = None
    R2_SECRET_KEY: Optional[str] = None
    R2_BUCKET_NAME: str = "ipfs-gallery"
    R2_PREFIX: str = "catalog/"

    # Cloudflare Workers KV
    CF_KV_NAMESPACE_ID: str = ""

    @property
    def allowed_origins(self) -> list:
        """CORS origins as a list"""
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",") if origin.strip()]

    @property
    def pin_api_url(self) -> str:
        """Cloudflare IPFS pinning endpoint for the configured account"""
        return f"{self.CF_API_BASE_URL.rstrip('/')}/accounts/{self.CF_ACCOUNT_ID}/ipfs/pins"

    class Config:
        env_file = ".env"

settings = Settings()
