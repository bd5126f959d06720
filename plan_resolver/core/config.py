from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    # App Basics
    app_env: str = "dev"
    app_name: str = "Membership Plan Resolver"
    log_level: str = "info"

    # Plans
    default_currency: str = "VND"

    # Raise on corrupted upstream data instead of flagging it on the view
    strict_integrity: bool = False

    # Tell pydantic to read from .env file
    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="",
        extra="ignore",
    )

settings = Settings()
