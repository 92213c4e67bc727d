import random

import pytest

from services.nikigai_engine.quality import (
    calculate_intra_cluster_similarity,
    calculate_inter_cluster_distance,
    calculate_gini,
    grade_for_score,
    calculate_cluster_quality_metrics
)

def _cluster(*tag_lists):
    return {"items": [{"text": str(i), "tags": {"skill_verb": list(tags)}} for i, tags in enumerate(tag_lists)]}

def test_intra_cluster_similarity_single_item_is_one():
    assert calculate_intra_cluster_similarity(_cluster(["x"])) == 1.0

def test_intra_cluster_similarity_pairwise_mean():
    assert calculate_intra_cluster_similarity(_cluster(["x"], ["x"], ["y"])) == pytest.approx(1 / 3)

def test_intra_cluster_similarity_pools_tag_types():
    cluster = {"items": [
        {"text": "a", "tags": {"skill_verb": ["a"]}},
        {"text": "b", "tags": {"domain_topic": ["a"]}},
    ]}
    assert calculate_intra_cluster_similarity(cluster) == 1.0

def test_inter_cluster_distance():
    assert calculate_inter_cluster_distance([_cluster(["x"])]) == 1.0
    assert calculate_inter_cluster_distance([_cluster(["x"]), _cluster(["y"])]) == 1.0
    assert calculate_inter_cluster_distance([_cluster(["x"]), _cluster(["x"])]) == 0.0

def test_gini_even_sizes_is_zero():
    assert calculate_gini([_cluster(["x"], ["x"]), _cluster(["y"], ["y"])]) == 0.0

def test_gini_uneven_sizes():
    assert calculate_gini([_cluster(["x"], ["x"]), _cluster(["y"])]) == pytest.approx(1 / 6)

@pytest.mark.parametrize("score, grade", [
    (0.95, "A"),
    (0.8, "A"),
    (0.79, "B"),
    (0.7, "B"),
    (0.65, "C"),
    (0.5, "D"),
    (0.49, "F"),
    (0.0, "F"),
])
def test_grade_for_score(score, grade):
    assert grade_for_score(score) == grade

def test_quality_metrics_well_separated_clusters():
    metrics = calculate_cluster_quality_metrics([_cluster(["x"], ["x"]), _cluster(["y"])])

    assert metrics == {
        "overall_score": 0.97,
        "coherence": 1.0,
        "distinctness": 1.0,
        "balance": 0.83,
        "grade": "A"
    }

def test_quality_metrics_single_incoherent_cluster():
    metrics = calculate_cluster_quality_metrics([_cluster(["x"], ["y"])])

    assert metrics["coherence"] == 0.0
    assert metrics["distinctness"] == 1.0
    assert metrics["balance"] == 1.0
    assert metrics["overall_score"] == 0.6
    assert metrics["grade"] == "C"

def test_quality_metrics_empty_input():
    metrics = calculate_cluster_quality_metrics([])

    assert metrics["overall_score"] == 0
    assert metrics["coherence"] == 0
    assert metrics["distinctness"] == 0
    assert metrics["balance"] == 0
    assert metrics["grade"] == "F"

def test_quality_metrics_repeatable():
    clusters = [_cluster(["x", "y"], ["x"]), _cluster(["y", "z"]), _cluster(["z"], ["z"], ["w"])]

    assert calculate_cluster_quality_metrics(clusters) == calculate_cluster_quality_metrics(clusters)

@pytest.mark.parametrize("seed", range(20))
def test_quality_metrics_bounded_for_random_clusters(seed):
    rng = random.Random(seed)
    pool = ["coaching", "writing", "building", "teaching", "painting"]
    clusters = [
        _cluster(*[rng.sample(pool, rng.randint(0, 3)) for _ in range(rng.randint(1, 5))])
        for _ in range(rng.randint(1, 5))
    ]

    metrics = calculate_cluster_quality_metrics(clusters)

    for field in ("overall_score", "coherence", "distinctness", "balance"):
        assert 0 <= metrics[field] <= 1
    assert metrics["grade"] in {"A", "B", "C", "D", "F"}
    assert metrics == calculate_cluster_quality_metrics(clusters)
