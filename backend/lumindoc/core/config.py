from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="LUMINDOC_", env_file=".env", extra="ignore")

    name: str = "Lumindoc API"
    version: str = "1.0.0"
    debug: bool = False
    prefix: str = "/api/v1"
    allowed_origins: list = ["http://localhost:3000"]
    # Run summarization on the rq queue; when off, uploads wait for the summary.
    async_summaries: bool = True


settings = Settings()
