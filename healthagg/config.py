from __future__ import annotations

from pydantic_settings import BaseSettings

from healthagg import __version__


class Settings(BaseSettings):
    """Process settings loaded from environment / .env file.

    The check groups themselves live in the YAML config file; these are the
    knobs that belong to the process rather than to a deployment's checks.
    """

    model_config = {
        "env_prefix": "HEALTHAGG_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    # Logging
    log_level: str = "INFO"

    # Sent on every outbound probe request
    user_agent: str = f"healthagg/{__version__}"


settings = Settings()
