"""Runtime settings, loaded from environment variables."""

from pydantic_settings import BaseSettings


class PsauxSettings(BaseSettings):
    interval: float = 20.0  # seconds between polls
    parsed: bool = True
    refresh_interval: float = 2.0
    log_level: str = "WARNING"

    model_config = {"env_prefix": "PSAUX_"}


settings = PsauxSettings()
