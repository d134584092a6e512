"""Recipe client configuration."""
from typing import Literal

from pydantic_settings import SettingsConfigDict

from shared.config import BaseAppSettings


class RecipeClientSettings(BaseAppSettings):
    model_config = SettingsConfigDict(env_prefix="RECIPE_CLIENT_")

    base_url: str = "http://localhost:8000"
    timeout_seconds: float = 120.0
    request_retries: int = 3
    user_id: str = ""

    # Rendering
    typewriter_mode: Literal["on_complete", "on_chunk"] = "on_complete"
    typing_delay_seconds: float = 0.05
    cursor_blink_seconds: float = 0.53
    auto_generate: bool = False

    # Ingredient input
    debounce_seconds: float = 0.3

    json_logs: bool = False
    log_level: str = "WARNING"
