from typing import Dict, List, Optional, Union
from pydantic import BaseModel, Field

from services.nikigai_engine.models import ClusteringParams

class TaggedResponse(BaseModel):
    store_as: str = ""  # question key, e.g. life_map.hobbies.childhood
    tags: Dict[str, List[str]] = Field(default_factory=dict)  # tag_type → tags
    response_raw: Optional[str] = None
    step_id: Optional[str] = None
    id: Optional[Union[int, str]] = None

class TagWeightsRequest(BaseModel):
    responses: List[TaggedResponse]

class TagWeight(BaseModel):
    tag: str
    tag_type: str
    joy_count: int
    meaning_count: int
    direction_count: int
    joy_weight: float
    meaning_weight: float
    direction_weight: float
    bullet_score: float

class TagWeightsResult(BaseModel):
    tag_weights: List[TagWeight]

class ClusterItem(BaseModel):
    text: str = ""
    tags: Dict[str, List[str]] = Field(default_factory=dict)
    source_step: Optional[str] = None
    bullet_score: float = 0

class ClusterRequest(BaseModel):
    responses: List[TaggedResponse]
    params: Optional[ClusteringParams] = None  # unset fields fall back to server settings

class ClusterResult(BaseModel):
    label: str
    score: float
    item_count: int
    items: List[ClusterItem]
    coherence_score: Optional[float] = None
    quality_grade: Optional[str] = None
    archetype: Optional[str] = None
    archetype_confidence: Optional[float] = None
    source_responses: List[str] = Field(default_factory=list)
    source_tags: List[str] = Field(default_factory=list)

class QualityMetrics(BaseModel):
    overall_score: float
    coherence: float
    distinctness: float
    balance: float
    grade: str

class ClusteringResult(BaseModel):
    clusters: List[ClusterResult]
    quality: QualityMetrics
    tag_weights: List[TagWeight]

class ClusterIn(BaseModel):
    items: List[ClusterItem] = Field(..., min_length=1)

class QualityRequest(BaseModel):
    clusters: List[ClusterIn]
