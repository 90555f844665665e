import os
from typing import Optional

from dotenv import load_dotenv

# Load .env file
load_dotenv('.env')


def get_env(name: str, default: Optional[str] = None) -> str:
    val = os.getenv(name, default)
    if val is None:
        raise RuntimeError(f"Missing required env var: {name}")
    return val


class Settings:
    def __init__(self):
        self.APP_NAME: str = get_env("APP_NAME", "CampusEats")
        self.APP_VERSION: str = get_env("APP_VERSION", "1.0.0")

        # App settings - need to be defined first for backend switching
        self.DEBUG: bool = get_env("DEBUG", "False").lower() == "true"
        self.TESTING: bool = get_env("TESTING", "False").lower() == "true"
        self.LOG_LEVEL: str = get_env("LOG_LEVEL", "DEBUG" if self.DEBUG else "INFO").upper()

        # Record store configuration - switch based on environment
        if self.TESTING:
            # In-memory store for testing
            self.STORE_BACKEND: str = "memory"
        else:
            self.STORE_BACKEND: str = get_env("STORE_BACKEND", "memory").lower()
        self.REDIS_URL: str = get_env("REDIS_URL", "redis://localhost:6379/0")
        self.STORE_KEY_PREFIX: str = get_env("STORE_KEY_PREFIX", "campuseats_")
        # Same order of magnitude as a browser storage quota; 0 disables the limit
        self.STORE_CAPACITY_BYTES: int = int(get_env("STORE_CAPACITY_BYTES", str(5 * 1024 * 1024)))

        # Payment simulator
        self.PAYMENT_DELAY_SECONDS: float = float(get_env("PAYMENT_DELAY_SECONDS", "2.0"))
        self.PAYMENT_SUCCESS_RATE: float = float(get_env("PAYMENT_SUCCESS_RATE", "0.9"))
        self.PAYMENT_CURRENCY: str = get_env("PAYMENT_CURRENCY", "USD")

        # Polling loops
        self.SHOPKEEPER_POLL_SECONDS: float = float(get_env("SHOPKEEPER_POLL_SECONDS", "10"))
        self.CUSTOMER_POLL_INITIAL_DELAY: float = float(get_env("CUSTOMER_POLL_INITIAL_DELAY", "2"))
        self.CUSTOMER_POLL_INTERVAL: float = float(get_env("CUSTOMER_POLL_INTERVAL", "5"))
        self.CUSTOMER_POLL_MAX_ATTEMPTS: int = int(get_env("CUSTOMER_POLL_MAX_ATTEMPTS", "60"))

        self.PORT: int = int(get_env("PORT", "8000"))


settings = Settings()
