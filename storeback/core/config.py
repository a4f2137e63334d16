import os
from typing import List, Optional
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


class Settings:
    """Application settings read from the environment (.env supported)"""

    def __init__(self):
        # PostgreSQL database configuration
        self.postgres_user = os.getenv("POSTGRES_USER", "postgres")
        self.postgres_password = os.getenv("POSTGRES_PASSWORD", "admin")
        self.postgres_host = os.getenv("POSTGRES_HOST", "localhost")
        self.postgres_port = os.getenv("POSTGRES_PORT", "5432")
        self.postgres_db = os.getenv("POSTGRES_DB", "store_db")

        # A full URL wins over the individual Postgres parts
        self.database_url = os.getenv("DATABASE_URL") or (
            f"postgresql://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

        # Token signing
        self.jwt_secret_key: Optional[str] = os.getenv("JWT_SECRET_KEY")
        self.jwt_algorithm = "HS256"
        self.jwt_issuer: Optional[str] = os.getenv("JWT_ISSUER") or None
        self.jwt_audience: Optional[str] = os.getenv("JWT_AUDIENCE") or None
        self.jwt_expire_hours = int(os.getenv("JWT_EXPIRE_HOURS", "24"))

        # File storage and accounts
        self.upload_dir = os.getenv("UPLOAD_DIR", "uploads")
        self.default_role = os.getenv("DEFAULT_ROLE", "user")

        self.cors_origins: List[str] = [
            origin.strip()
            for origin in os.getenv("CORS_ORIGINS", "*").split(",")
            if origin.strip()
        ]
        self.log_level = os.getenv("LOG_LEVEL", "INFO").upper()


settings = Settings()
