# services/nikigai_engine/quality.py
# Grades a clustering run by coherence, distinctness and size balance.
#
# All similarities here are the unweighted (pooled tag) Jaccard, even though
# clustering itself weights by source tags.

import logging
from typing import Dict, Any, Mapping, Sequence

from .clustering import calculate_item_similarity, calculate_cluster_similarity
from .definitions import QUALITY_WEIGHTS, GRADE_THRESHOLDS, FAILING_GRADE
from .weighting import round2

logger = logging.getLogger(__name__)


def calculate_intra_cluster_similarity(cluster: Mapping[str, Any]) -> float:
    """Average pairwise similarity inside a cluster; 1 for a single item."""
    items = cluster['items']
    if len(items) < 2:
        return 1.0

    total_similarity = 0.0
    comparisons = 0
    for i in range(len(items)):
        for j in range(i + 1, len(items)):
            total_similarity += calculate_item_similarity(items[i], items[j])
            comparisons += 1
    return total_similarity / comparisons if comparisons > 0 else 0.0


def calculate_inter_cluster_distance(clusters: Sequence[Mapping[str, Any]]) -> float:
    """Average (1 - similarity) over all cluster pairs; 1 with fewer than two clusters."""
    if len(clusters) < 2:
        return 1.0

    total_distance = 0.0
    comparisons = 0
    for i in range(len(clusters)):
        for j in range(i + 1, len(clusters)):
            total_distance += 1 - calculate_cluster_similarity(clusters[i], clusters[j])
            comparisons += 1
    return total_distance / comparisons if comparisons > 0 else 0.0


def calculate_gini(clusters: Sequence[Mapping[str, Any]]) -> float:
    """Gini coefficient of cluster sizes (0 = perfectly even)."""
    sizes = sorted(len(cluster['items']) for cluster in clusters)
    n = len(sizes)
    total_items = sum(sizes)
    if total_items == 0:
        return 0.0

    weighted_sum = sum((2 * (i + 1) - n - 1) * size for i, size in enumerate(sizes))
    return weighted_sum / (n * total_items)


def grade_for_score(overall_score: float) -> str:
    for grade, threshold in GRADE_THRESHOLDS:
        if overall_score >= threshold:
            return grade
    return FAILING_GRADE


def calculate_cluster_quality_metrics(clusters: Sequence[Mapping[str, Any]]) -> Dict[str, Any]:
    """
    Scores a set of clusters.

    Returns:
        {"overall_score", "coherence", "distinctness", "balance"} rounded to
        2 decimals, plus a letter "grade" (A-F) taken from the unrounded overall.
    """
    if not clusters:
        logger.warning("No clusters provided for quality metrics.")
        return {
            'overall_score': 0,
            'coherence': 0,
            'distinctness': 0,
            'balance': 0,
            'grade': FAILING_GRADE
        }

    coherence = sum(calculate_intra_cluster_similarity(c) for c in clusters) / len(clusters)
    distinctness = calculate_inter_cluster_distance(clusters)
    balance = 1 - calculate_gini(clusters)

    overall_score = (
        coherence * QUALITY_WEIGHTS['coherence'] +
        distinctness * QUALITY_WEIGHTS['distinctness'] +
        balance * QUALITY_WEIGHTS['balance']
    )
    grade = grade_for_score(overall_score)

    logger.debug(
        f"Cluster quality: overall={overall_score:.3f} coherence={coherence:.3f} "
        f"distinctness={distinctness:.3f} balance={balance:.3f} grade={grade}"
    )
    return {
        'overall_score': round2(overall_score),
        'coherence': round2(coherence),
        'distinctness': round2(distinctness),
        'balance': round2(balance),
        'grade': grade
    }
