from decimal import Decimal
from typing import Optional
from urllib.parse import quote_plus

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    env: str = "local"
    log_level: str = "INFO"

    postgres_user: str = "foodtime"
    postgres_password: str = ""
    postgres_db: str = "foodtime"
    postgres_host: str = "localhost"
    postgres_port: str = "5432"

    # set to use a different backend (sqlite for local runs and tests)
    sqlalchemy_url: Optional[str] = None
    db_isolation_level: str = "SERIALIZABLE"

    wallet_max_balance: Decimal = Decimal("1000000.00")
    order_timeout_minutes: int = 30

    lock_timeout_seconds: float = 5.0
    tx_retry_attempts: int = 3
    tx_retry_backoff_initial: float = 0.05
    tx_retry_backoff_factor: float = 2.0
    tx_retry_backoff_max: float = 1.0

    @property
    def database_url(self):
        if self.sqlalchemy_url:
            return self.sqlalchemy_url
        encoded_password = quote_plus(self.postgres_password)
        return (
            f"postgresql+psycopg2://{self.postgres_user}:"
            f"{encoded_password}@{self.postgres_host}:"
            f"{self.postgres_port}/{self.postgres_db}"
        )

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "allow"

settings = Settings()
