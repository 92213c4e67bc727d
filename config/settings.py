from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
import os

from services.nikigai_engine.definitions import DEFAULT_SOURCE_TAGS
from services.nikigai_engine.models import ClusteringParams

# Load .env file if it exists, for local development
# In production, environment variables should be set directly.
if os.path.exists(".env"):
    from dotenv import load_dotenv
    load_dotenv()

class ClusteringSettings(BaseSettings):
    similarity_threshold: float = Field(0.25, ge=0.0, le=1.0)
    min_merge_similarity: float = Field(0.1, ge=0.0, le=1.0)
    source_tags: List[str] = Field(default_factory=lambda: list(DEFAULT_SOURCE_TAGS)) # JSON list in env
    min_items_per_cluster: int = Field(3, ge=1)
    max_merge_iterations: Optional[int] = Field(None, ge=0)

    model_config = SettingsConfigDict(env_prefix='NIKIGAI_')

    def to_params(self) -> ClusteringParams:
        return ClusteringParams(**self.model_dump())

class AppSettings(BaseSettings):
    log_level: str = "INFO"
    archetype_library_path: Optional[str] = None
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])

    model_config = SettingsConfigDict(env_prefix='NIKIGAI_')

# Instantiate settings
clustering_settings = ClusteringSettings()
app_settings = AppSettings()
