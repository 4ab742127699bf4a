from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(env_file=".env", env_prefix="CARTA_")

    app_name: str = "Carta"
    debug: bool = False

    # Durable deck storage. Any SQLAlchemy async URL works; SQLite is the default.
    database_url: str = "sqlite+aiosqlite:///./carta.db"

    # Import bundled sample decks on startup when the store is empty
    seed_sample_decks: bool = True

    # Seconds before a URL import gives up
    import_timeout: float = 10.0


settings = Settings()
