import logging
from typing import Dict, List, Any, Mapping, Optional, Sequence, Union

from .clustering import generate_clusters, generate_cluster_label, suggest_archetype
from .loader import load_archetype_library_from_file
from .models import ClusteringParams, ClusterRecord, RoleArchetype
from .quality import calculate_cluster_quality_metrics, calculate_intra_cluster_similarity
from .weighting import (
    calculate_tag_frequencies,
    calculate_weights,
    rank_weighted_tags,
    process_tag_weights,
    score_item,
    response_tag_map,
    sort_clusters_by_score,
    extract_bullet_points,
    round2
)

logger = logging.getLogger(__name__)

class NikigaiEngine:
    """
    Runs a Nikigai clustering checkpoint: weights the tags of every response so
    far, splits answers into bullet items, clusters them and grades the result.
    """
    def __init__(
        self,
        archetypes: Optional[Sequence[RoleArchetype]] = None,
        default_params: Optional[ClusteringParams] = None
    ):
        """
        Args:
            archetypes: Role archetypes used to suggest an identity per cluster.
                        Without them clusters carry no archetype.
            default_params: Clustering parameters used when run_checkpoint gets none.
        """
        self.archetypes: List[RoleArchetype] = list(archetypes or [])
        self.default_params = default_params or ClusteringParams()

    @classmethod
    def from_archetype_file(cls, file_path: str, default_params: Optional[ClusteringParams] = None) -> "NikigaiEngine":
        library = load_archetype_library_from_file(file_path)
        logger.info(f"Loaded {len(library.archetypes)} role archetypes from {file_path} (version {library.version})")
        return cls(archetypes=library.archetypes, default_params=default_params)

    def weigh_tags(self, responses: Sequence[Mapping[str, Any]]) -> List[Dict[str, Any]]:
        return process_tag_weights(responses)

    def grade_clusters(self, clusters: Sequence[Mapping[str, Any]]) -> Dict[str, Any]:
        return calculate_cluster_quality_metrics(clusters)

    def build_items(
        self,
        responses: Sequence[Mapping[str, Any]],
        weighted: Optional[Dict[str, Dict[str, Any]]] = None
    ) -> List[Dict[str, Any]]:
        """One item per bullet of each response, carrying the response's tags."""
        if weighted is None:
            weighted = calculate_weights(calculate_tag_frequencies(responses))

        items = []
        for response in responses:
            item_tags = response_tag_map(response)
            bullet_score = score_item(item_tags, weighted)
            for bullet in extract_bullet_points(response.get('response_raw')):
                items.append({
                    'text': bullet,
                    'tags': item_tags,
                    'source_step': response.get('step_id'),
                    'bullet_score': bullet_score
                })
        return items

    def _resolve_params(self, params: Union[ClusteringParams, Mapping[str, Any], None]) -> ClusteringParams:
        if params is None:
            return self.default_params
        if isinstance(params, ClusteringParams):
            return params
        return self.default_params.model_copy(update=ClusteringParams.model_validate(dict(params)).model_dump(exclude_unset=True))

    def run_checkpoint(
        self,
        responses: Sequence[Mapping[str, Any]],
        params: Union[ClusteringParams, Mapping[str, Any], None] = None
    ) -> Dict[str, Any]:
        """
        Weights, clusters and grades all responses collected so far.

        Returns:
            {"tag_weights": [...], "items": [...], "clusters": [...], "quality": {...}}
            Clusters are labelled, scored and sorted by score (highest first).
        """
        params = self._resolve_params(params)
        if not responses:
            logger.warning("No responses provided for clustering checkpoint.")
            return {
                'tag_weights': [],
                'items': [],
                'clusters': [],
                'quality': calculate_cluster_quality_metrics([])
            }

        # 1. Tag weights across all responses
        weighted = calculate_weights(calculate_tag_frequencies(responses))
        tag_weights = rank_weighted_tags(weighted)

        # 2. Bullet items with scores
        items = self.build_items(responses, weighted)

        # 3. Cluster, then label and annotate
        clusters = generate_clusters(items, params)
        annotated = []
        for cluster in clusters:
            annotated_cluster = {
                **cluster,
                'label': generate_cluster_label(cluster),
                'coherence_score': round2(calculate_intra_cluster_similarity(cluster)),
                'source_responses': sorted({i['source_step'] for i in cluster['items'] if i.get('source_step')}),
                'source_tags': list(params.source_tags)
            }
            if self.archetypes:
                suggestion = suggest_archetype(cluster, self.archetypes)
                annotated_cluster['archetype'] = suggestion['archetype']
                annotated_cluster['archetype_confidence'] = round2(suggestion['confidence'])
            annotated.append(annotated_cluster)

        # 4. Rank and grade
        ranked = sort_clusters_by_score(annotated)
        quality = calculate_cluster_quality_metrics(ranked)
        for cluster in ranked:
            cluster['quality_grade'] = quality['grade']

        logger.info(
            f"Checkpoint produced {len(ranked)} clusters from {len(items)} items "
            f"(grade {quality['grade']}, overall {quality['overall_score']})"
        )
        return {
            'tag_weights': tag_weights,
            'items': items,
            'clusters': ranked,
            'quality': quality
        }

    def build_cluster_records(
        self,
        session_id: str,
        user_id: str,
        clusters: Sequence[Mapping[str, Any]],
        cluster_type: str,
        cluster_stage: str
    ) -> List[ClusterRecord]:
        """Shapes clusters into nikigai_clusters rows; writing them is the caller's job."""
        return [
            ClusterRecord(
                session_id=session_id,
                user_id=user_id,
                cluster_type=cluster_type,
                cluster_stage=cluster_stage,
                cluster_label=cluster.get('label') or generate_cluster_label(cluster),
                archetype=cluster.get('archetype'),
                items=list(cluster['items']),
                score=cluster.get('score') or 0,
                coherence_score=cluster.get('coherence_score'),
                quality_grade=cluster.get('quality_grade'),
                source_responses=list(cluster.get('source_responses') or []),
                source_tags=list(cluster.get('source_tags') or [])
            )
            for cluster in clusters
        ]
