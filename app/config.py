from pydantic_settings import BaseSettings
from typing import Optional
from urllib.parse import quote_plus

class Settings(BaseSettings):
    ENV: str = "local"

    # Either a full DATABASE_URL or the postgres parts below
    DATABASE_URL: Optional[str] = None
    postgres_user: str = "postgres"
    postgres_password: str = ""
    postgres_db: str = "bookstore"
    postgres_host: str = "localhost"
    postgres_port: str = "5432"

    secret_key: str = "change-me"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24

    # Admin authorization is resolved here, never in the client
    ADMIN_EMAILS: str = ""

    BREVO_API_KEY: Optional[str] = None
    MAIL_FROM: str = "orders@bookstore.local"
    STORE_NAME: str = "Bookstore"
    ORDER_NOTIFY_EMAILS: str = ""

    ITEMS_PER_PAGE: int = 12
    CURRENCY_SYMBOL: str = "₹"
    DEFAULT_CITY: str = "Namakkal"
    DEFAULT_STATE: str = "Tamil Nadu"

    CORS_ORIGINS: str = "http://localhost:5173,http://127.0.0.1:5173"

    @property
    def database_url(self):
        if self.DATABASE_URL:
            return self.DATABASE_URL
        encoded_password = quote_plus(self.postgres_password)
        return (
            f"postgresql+psycopg2://{self.postgres_user}:"
            f"{encoded_password}@{self.postgres_host}:"
            f"{self.postgres_port}/{self.postgres_db}"
        )

    @property
    def admin_emails(self) -> list[str]:
        return _split_csv(self.ADMIN_EMAILS, lower=True)

    @property
    def order_notify_emails(self) -> list[str]:
        return _split_csv(self.ORDER_NOTIFY_EMAILS)

    @property
    def cors_origins(self) -> list[str]:
        return _split_csv(self.CORS_ORIGINS)

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "allow"


def _split_csv(value: str, lower: bool = False) -> list[str]:
    items = [v.strip() for v in (value or "").split(",") if v.strip()]
    return [v.lower() for v in items] if lower else items


settings = Settings()
