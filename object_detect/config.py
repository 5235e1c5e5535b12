from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file='.env', env_file_encoding='utf-8', extra='ignore')

    provider: str = 'dummy'
    model_dir: str = 'models'
    model_name: str = 'yolov8n'
    conf_threshold: float = 0.1
    dummy_delay_ms: int = 0
    inference_workers: int = 1
    max_image_bytes: int = 8 * 1024 * 1024
    max_display_side: int = 4096
    log_level: str = 'INFO'
    version: str = '1.0.0'


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
