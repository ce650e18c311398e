import logging
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import HttpUrl, SecretStr

from adventure_weaver.core.errors import CredentialsMissing

logger = logging.getLogger(__name__)

class Settings(BaseSettings):
    api_key: Optional[SecretStr] = None
    ollama_host: HttpUrl = "http://localhost:11434"
    ollama_model: str = "gemma3:4b"
    auto_pull: bool = True
    image_host: HttpUrl = "http://localhost:7860"
    image_width: int = 768
    image_height: int = 432
    image_steps: int = 20
    negative_prompt: str = "text, watermark, blurry, lowres"
    temperature: float = 0.8
    max_tokens: int = 600
    context_scenes: int = 5
    request_timeout: float = 120.0
    request_attempts: int = 1
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        validate_assignment=True,
    )

    @property
    def credentials_present(self) -> bool:
        return bool(self.api_key and self.api_key.get_secret_value().strip())

    def auth_headers(self) -> dict[str, str]:
        if not self.credentials_present:
            raise CredentialsMissing("API_KEY is not set")
        return {"Authorization": f"Bearer {self.api_key.get_secret_value().strip()}"}

settings = Settings()

if not settings.credentials_present:
    logger.warning("API_KEY is not set; gameplay will be disabled")
