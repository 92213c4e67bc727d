from fastapi import APIRouter, HTTPException, Depends
import logging

from src.schemas.nikigai import (
    TagWeightsRequest,
    TagWeightsResult,
    ClusterRequest,
    ClusteringResult,
    QualityRequest,
    QualityMetrics
)
from services.nikigai_engine.engine import NikigaiEngine
from config.settings import clustering_settings, app_settings

router = APIRouter()
logger = logging.getLogger(__name__)

_engine = None

def get_nikigai_engine() -> NikigaiEngine:
    global _engine
    if _engine is None:
        default_params = clustering_settings.to_params()
        if app_settings.archetype_library_path:
            _engine = NikigaiEngine.from_archetype_file(app_settings.archetype_library_path, default_params)
        else:
            _engine = NikigaiEngine(default_params=default_params)
    return _engine

@router.post("/nikigai/tag-weights", response_model=TagWeightsResult)
async def tag_weights(
    request: TagWeightsRequest,
    engine: NikigaiEngine = Depends(get_nikigai_engine)
):
    """
    Scores every distinct tag by how often it shows up in joy, meaning and
    direction questions. Highest bullet score first.
    """
    try:
        responses = [r.model_dump() for r in request.responses]
        return {"tag_weights": engine.weigh_tags(responses)}
    except ValueError as e:
        logger.error(f"Invalid tag weight request: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception(f"Unexpected error during tag weighting: {e}")
        raise HTTPException(status_code=500, detail="Internal Server Error")

@router.post("/nikigai/clusters", response_model=ClusteringResult)
async def cluster_responses(
    request: ClusterRequest,
    engine: NikigaiEngine = Depends(get_nikigai_engine)
):
    """
    Runs a clustering checkpoint over the submitted responses and returns the
    labelled clusters with their quality grade.
    """
    params = clustering_settings.to_params()
    if request.params is not None:
        params = params.model_copy(update=request.params.model_dump(exclude_unset=True))

    try:
        responses = [r.model_dump() for r in request.responses]
        result = engine.run_checkpoint(responses, params)
        logger.info(f"Clustering checkpoint returned {len(result['clusters'])} clusters")
        return {
            "clusters": result["clusters"],
            "quality": result["quality"],
            "tag_weights": result["tag_weights"]
        }
    except ValueError as e:
        # pydantic's ValidationError is a ValueError too
        logger.error(f"Invalid clustering request: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception(f"Unexpected error during clustering: {e}")
        raise HTTPException(status_code=500, detail="Internal Server Error")

@router.post("/nikigai/clusters/quality", response_model=QualityMetrics)
async def cluster_quality(
    request: QualityRequest,
    engine: NikigaiEngine = Depends(get_nikigai_engine)
):
    """Grades a set of clusters the client already holds."""
    try:
        clusters = [cluster.model_dump() for cluster in request.clusters]
        return engine.grade_clusters(clusters)
    except ValueError as e:
        logger.error(f"Invalid quality request: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception(f"Unexpected error during quality scoring: {e}")
        raise HTTPException(status_code=500, detail="Internal Server Error")
