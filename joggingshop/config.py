from typing import List, Optional
from urllib.parse import quote_plus

from pydantic_settings import BaseSettings

# MoMo's public sandbox credentials, used when no dedicated secrets are set
MOMO_SANDBOX_ACCESS_KEY = "F8BBA842ECF85"
MOMO_SANDBOX_SECRET_KEY = "K951B6PE1waDMi640xX08PD3vg6EkVlz"


class Settings(BaseSettings):
    env: str = "local"
    log_level: str = "INFO"

    postgres_user: str = "postgres"
    postgres_password: str = ""
    postgres_db: str = "joggingshop"
    postgres_host: str = "localhost"
    postgres_port: str = "5432"
    database_url_override: Optional[str] = None

    site_url: str = "http://localhost:3000"
    cors_origins: List[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    stripe_secret_key: Optional[str] = None

    momo_partner_code: str = "MOMO"
    momo_access_key: str = MOMO_SANDBOX_ACCESS_KEY
    momo_secret_key: str = MOMO_SANDBOX_SECRET_KEY
    momo_endpoint: str = "https://test-payment.momo.vn/v2/gateway/api/create"
    momo_timeout_seconds: int = 30

    @property
    def database_url(self):
        if self.database_url_override:
            return self.database_url_override
        encoded_password = quote_plus(self.postgres_password)
        return (
            f"postgresql+psycopg2://{self.postgres_user}:"
            f"{encoded_password}@{self.postgres_host}:"
            f"{self.postgres_port}/{self.postgres_db}"
        )

    @property
    def uses_momo_sandbox(self) -> bool:
        return self.momo_secret_key == MOMO_SANDBOX_SECRET_KEY

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "allow"


settings = Settings()
