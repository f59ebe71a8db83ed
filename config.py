"""
Runtime configuration for the StayVista API.

Every value comes from the environment (or a local .env file). Secrets have no
usable default: the service refuses to start without ACCESS_TOKEN_SECRET.
"""

from typing import List, Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Session credential
    access_token_secret: SecretStr = Field(..., description="HMAC secret used to sign session tokens")
    token_algorithm: str = "HS256"
    token_lifetime_days: int = 365
    token_cookie_name: str = "token"

    environment: Literal["development", "production"] = "development"

    # MongoDB
    database_url: str = "mongodb://localhost:27017"
    database_name: str = "stayVista"

    # Stripe
    stripe_secret_key: SecretStr = SecretStr("")
    payment_currency: str = "usd"

    # Outbound mail
    email_provider: Literal["console", "resend"] = "console"
    resend_api_key: SecretStr = SecretStr("")
    mail_from: str = "StayVista <bookings@stayvista.example>"

    allowed_origins: List[str] = ["http://localhost:5173", "http://localhost:5174"]
    port: int = 8000

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def cookie_samesite(self) -> Literal["none", "strict"]:
        # Production frontends live on another site, so the cookie must be sent cross-site.
        return "none" if self.is_production else "strict"


settings = Settings()
