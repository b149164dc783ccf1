"""Configuration management using Pydantic Settings"""

from typing import List
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Appwrite (auth + documents)
    appwrite_endpoint: str = "https://cloud.appwrite.io/v1"
    appwrite_project: str = ""
    appwrite_key: str = ""
    appwrite_database_id: str = ""
    appwrite_user_collection_id: str = ""
    appwrite_bank_collection_id: str = ""
    appwrite_transaction_collection_id: str = ""

    # Plaid (aggregator)
    plaid_client_id: str = ""
    plaid_secret: str = ""
    plaid_env: str = "sandbox"
    plaid_products: List[str] = ["auth", "transactions"]
    plaid_country_codes: List[str] = ["US"]

    # Dwolla (processor)
    dwolla_key: str = ""
    dwolla_secret: str = ""
    dwolla_env: str = "sandbox"

    # Service
    service_name: str = "horizon"
    environment: str = "development"
    log_level: str = "INFO"

    # HTTP Client
    http_timeout_seconds: float = 10.0
    dwolla_max_retries: int = 3
    dwolla_backoff_base: float = 0.5  # Exponential backoff base in seconds

    # Paging
    appwrite_page_size: int = 100  # Documents per list request; Appwrite defaults to 25
    transactions_sync_page_size: int = 100
    transactions_per_page: int = 10

    @property
    def session_cookie_name(self) -> str:
        return f"a_session_{self.appwrite_project}"

    @property
    def secure_cookies(self) -> bool:
        return self.environment == "production"


settings = Settings()
