from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()


class Settings(BaseSettings):
    # Application settings
    app_name: str = "Multi-locale CMS"
    app_version: str = "1.0.0"
    debug: bool = False
    environment: str = "development"

    # Database settings
    database_url: str = "sqlite+aiosqlite:///./cms.db"

    # i18n settings
    default_locale: str = "en"

    # Pagination
    default_page_size: int = 10
    max_page_size: int = 100

    # Roles allowed to list every user account
    user_list_roles: list[str] = ["editor"]

    # Logging
    log_level: str = "INFO"
    log_format: str = "plain"  # "plain" or "json"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


settings = Settings()
