from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import List, Dict, Any, Optional

from .definitions import DEFAULT_SOURCE_TAGS

class ClusteringParams(BaseModel):
    # Callers from the quiz flow still pass target_clusters_min/max; ignore them.
    model_config = ConfigDict(extra='ignore')

    similarity_threshold: float = Field(0.25, ge=0.0, le=1.0)
    min_merge_similarity: float = Field(0.1, ge=0.0, le=1.0)
    source_tags: List[str] = Field(default_factory=lambda: list(DEFAULT_SOURCE_TAGS))
    min_items_per_cluster: int = Field(3, ge=1) # Only read by split_cluster
    max_merge_iterations: Optional[int] = Field(None, ge=0)

class RoleArchetype(BaseModel):
    name: str
    core_skills: List[str] = Field(..., min_length=1)
    description: Optional[str] = None

    @field_validator('core_skills')
    @classmethod
    def strip_blank_skills(cls, skills: List[str]) -> List[str]:
        cleaned = [s.strip() for s in skills if s and s.strip()]
        if not cleaned:
            raise ValueError("core_skills must contain at least one non-blank skill")
        return cleaned

class ArchetypeLibrary(BaseModel):
    version: str = "1.0.0"
    archetypes: List[RoleArchetype]

class ClusterRecord(BaseModel):
    """Row shape expected by the nikigai_clusters table."""
    session_id: str
    user_id: str
    cluster_type: str
    cluster_stage: str
    cluster_label: str
    archetype: Optional[str] = None
    items: List[Dict[str, Any]]
    score: float = 0
    coherence_score: Optional[float] = None
    quality_grade: Optional[str] = None
    source_responses: List[Any] = Field(default_factory=list)
    source_tags: List[str] = Field(default_factory=list)

# Custom Error Classes
class ArchetypeLibraryError(ValueError):
    """Custom exception for archetype library problems not covered by Pydantic."""
    pass
