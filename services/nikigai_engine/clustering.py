"""
Nikigai clustering.

Groups tagged bullet items into themes by weighted Jaccard similarity over
their tags:

1. every item starts as its own cluster
2. the most similar pair of clusters (mean pairwise item similarity) is
   merged until the best pair falls below ``similarity_threshold``
3. clusters still holding a single item are folded into their nearest
   neighbour when that similarity reaches ``min_merge_similarity``

``split_cluster`` and ``generate_cluster_label`` are standalone helpers; the
merge loop never calls them.
"""

import logging
from typing import Dict, Any, List, Mapping, Optional, Sequence, Set, Tuple, Union

from .definitions import (
    SOURCE_TAG_WEIGHT,
    VALUE_TAG_WEIGHT,
    INCIDENTAL_TAG_WEIGHT,
    CENTROID_MEMBERSHIP_THRESHOLD,
    LABEL_TOP_TAGS,
    UNNAMED_CLUSTER_LABEL
)
from .models import ClusteringParams, RoleArchetype

logger = logging.getLogger(__name__)

TagMap = Dict[str, List[str]]
Cluster = Dict[str, Any]


def _tag_list(values: Any) -> List[str]:
    if values is None:
        return []
    if isinstance(values, str):
        return [values]
    if isinstance(values, (list, tuple)):
        return list(values)
    return sorted(values)


def _tag_values(values: Any) -> Set[str]:
    return set(_tag_list(values))


def _tags_of(item: Mapping[str, Any]) -> Mapping[str, Any]:
    return item.get('tags') or {}


def _flatten_tags(tags: Mapping[str, Any]) -> Set[str]:
    flat = set()
    for values in tags.values():
        flat |= _tag_values(values)
    return flat


def _coerce_params(params: Union[ClusteringParams, Mapping[str, Any], None]) -> ClusteringParams:
    if params is None:
        return ClusteringParams()
    if isinstance(params, ClusteringParams):
        return params
    return ClusteringParams.model_validate(dict(params))


# --- Similarity ---

def _tag_type_weight(tag_type: str, source_tags: Sequence[str]) -> float:
    if tag_type in source_tags:
        return SOURCE_TAG_WEIGHT
    if tag_type == 'value':
        return VALUE_TAG_WEIGHT
    return INCIDENTAL_TAG_WEIGHT


def calculate_item_similarity(
    item1: Mapping[str, Any],
    item2: Mapping[str, Any],
    source_tags: Optional[Sequence[str]] = None
) -> float:
    """
    Jaccard similarity between two items' tags, in [0, 1].

    Without source_tags all tag values are pooled into one set. With
    source_tags each tag type is compared separately and weighted: 1.5 for
    source tag types, 1.0 for 'value', 0.3 for anything else.
    """
    tags1 = _tags_of(item1)
    tags2 = _tags_of(item2)

    if not source_tags:
        flat1 = _flatten_tags(tags1)
        flat2 = _flatten_tags(tags2)
        if not flat1 and not flat2:
            return 0.0
        return len(flat1 & flat2) / len(flat1 | flat2)

    weighted_intersection = 0.0
    weighted_union = 0.0
    # sorted so a/b and b/a accumulate in the same order
    for tag_type in sorted(set(tags1) | set(tags2)):
        values1 = _tag_values(tags1.get(tag_type))
        values2 = _tag_values(tags2.get(tag_type))
        weight = _tag_type_weight(tag_type, source_tags)
        weighted_intersection += weight * len(values1 & values2)
        weighted_union += weight * len(values1 | values2)

    if weighted_union == 0:
        return 0.0
    return weighted_intersection / weighted_union


def calculate_cluster_similarity(
    cluster1: Mapping[str, Any],
    cluster2: Mapping[str, Any],
    source_tags: Optional[Sequence[str]] = None
) -> float:
    """Average similarity over every item pair drawn from the two clusters."""
    total_similarity = 0.0
    count = 0
    for item1 in cluster1['items']:
        for item2 in cluster2['items']:
            total_similarity += calculate_item_similarity(item1, item2, source_tags)
            count += 1
    return total_similarity / count if count > 0 else 0.0


# --- Centroids ---

def merge_centroids(centroid1: Mapping[str, Sequence[str]], centroid2: Mapping[str, Sequence[str]]) -> TagMap:
    """Tag-type-wise union of two centroids, first-seen order kept."""
    merged = {tag_type: list(tags) for tag_type, tags in centroid1.items()}
    for tag_type, tags in centroid2.items():
        existing = merged.setdefault(tag_type, [])
        for tag in tags:
            if tag not in existing:
                existing.append(tag)
    return merged


def calculate_centroid(items: Sequence[Mapping[str, Any]]) -> TagMap:
    """Tags that appear in at least 30% of the items, per tag type seen (possibly empty)."""
    tag_counts: Dict[str, Dict[str, int]] = {}
    for item in items:
        for tag_type, tags in _tags_of(item).items():
            counts = tag_counts.setdefault(tag_type, {})
            for tag in _tag_list(tags):
                counts[tag] = counts.get(tag, 0) + 1

    threshold = len(items) * CENTROID_MEMBERSHIP_THRESHOLD
    centroid = {}
    for tag_type, counts in tag_counts.items():
        centroid[tag_type] = [tag for tag, count in counts.items() if count >= threshold]
    return centroid


def _merge_clusters(cluster1: Cluster, cluster2: Cluster) -> Cluster:
    return {
        'items': cluster1['items'] + cluster2['items'],
        'centroid': merge_centroids(cluster1['centroid'], cluster2['centroid'])
    }


# --- Clustering ---

def _filter_item_tags(item: Mapping[str, Any], source_tags: Sequence[str]) -> Dict[str, Any]:
    filtered = dict(item)
    filtered['tags'] = {
        tag_type: _tag_list(tags)
        for tag_type, tags in _tags_of(item).items()
        if tag_type in source_tags
    }
    return filtered


def _find_most_similar_pair(
    slots: List[Optional[Cluster]],
    source_tags: Sequence[str]
) -> Tuple[float, int, int]:
    live = [index for index, cluster in enumerate(slots) if cluster is not None]
    max_similarity = -1.0
    merge_indices = (live[0], live[1])

    for a in range(len(live)):
        for b in range(a + 1, len(live)):
            i, j = live[a], live[b]
            similarity = calculate_cluster_similarity(slots[i], slots[j], source_tags)
            if similarity > max_similarity:
                max_similarity = similarity
                merge_indices = (i, j)

    return max_similarity, merge_indices[0], merge_indices[1]


def _absorb_singletons(
    slots: List[Optional[Cluster]],
    source_tags: Sequence[str],
    min_merge_similarity: float
) -> int:
    """Folds single-item clusters into their nearest neighbour. Returns the number absorbed."""
    absorbed = 0
    for index in range(len(slots)):
        singleton = slots[index]
        if singleton is None or len(singleton['items']) != 1:
            continue

        best_similarity = -1.0
        best_index = None
        for other_index, other in enumerate(slots):
            if other_index == index or other is None:
                continue
            similarity = calculate_cluster_similarity(singleton, other, source_tags)
            if similarity > best_similarity:
                best_similarity = similarity
                best_index = other_index

        if best_index is not None and best_similarity >= min_merge_similarity:
            slots[best_index] = _merge_clusters(slots[best_index], singleton)
            slots[index] = None
            absorbed += 1
            logger.debug(
                f"Absorbed singleton '{singleton['items'][0].get('text')}' into cluster slot {best_index} "
                f"(similarity={best_similarity:.3f})"
            )
        else:
            logger.debug(
                f"Singleton '{singleton['items'][0].get('text')}' kept standalone "
                f"(best similarity={max(best_similarity, 0.0):.3f} < {min_merge_similarity})"
            )
    return absorbed


def generate_clusters(
    items: Sequence[Mapping[str, Any]],
    params: Union[ClusteringParams, Mapping[str, Any], None] = None
) -> List[Dict[str, Any]]:
    """
    Clusters tagged items by greedy agglomerative merging.

    Args:
        items: Items shaped like {"text": ..., "tags": {tag_type: [tags]}}; any
               other fields are carried through.
        params: ClusteringParams or a dict of its fields. Unknown keys are ignored.

    Returns:
        A list of {"items": [...], "item_count": n}. Items are copies whose tags
        are restricted to params.source_tags.
    """
    params = _coerce_params(params)
    if not items:
        return []

    source_tags = list(params.source_tags)
    if not source_tags:
        logger.warning("Clustering with empty source_tags: every item loses its tags and stays unmerged")

    filtered_items = [_filter_item_tags(item, source_tags) for item in items]

    # Arena of slots: merged-away clusters become None so indices stay stable
    slots: List[Optional[Cluster]] = [
        {'items': [item], 'centroid': {t: list(v) for t, v in item['tags'].items()}}
        for item in filtered_items
    ]
    live_count = len(slots)
    merges = 0

    while live_count > 1:
        if params.max_merge_iterations is not None and merges >= params.max_merge_iterations:
            logger.warning(f"Stopped merging after max_merge_iterations={params.max_merge_iterations}")
            break

        max_similarity, i, j = _find_most_similar_pair(slots, source_tags)
        if max_similarity < params.similarity_threshold:
            logger.debug(
                f"Best pair similarity {max_similarity:.3f} below threshold "
                f"{params.similarity_threshold}; stopping with {live_count} clusters"
            )
            break

        logger.debug(f"Merging cluster slots {i} and {j} (similarity={max_similarity:.3f})")
        slots[i] = _merge_clusters(slots[i], slots[j])
        slots[j] = None
        live_count -= 1
        merges += 1

    absorbed = _absorb_singletons(slots, source_tags, params.min_merge_similarity)

    clusters = [cluster for cluster in slots if cluster is not None]
    logger.info(
        f"Generated {len(clusters)} clusters from {len(items)} items "
        f"({merges} merges, {absorbed} singletons absorbed)"
    )
    return [
        {'items': cluster['items'], 'item_count': len(cluster['items'])}
        for cluster in clusters
    ]


def split_cluster(
    cluster: Mapping[str, Any],
    min_items_per_cluster: int = 3,
    source_tags: Optional[Sequence[str]] = None
) -> List[Mapping[str, Any]]:
    """
    Splits an oversized cluster in two around its two most dissimilar items.

    Clusters smaller than twice min_items_per_cluster come back unchanged as
    a one-element list.
    """
    members = list(cluster['items'])
    if len(members) < max(2 * min_items_per_cluster, 2):
        return [cluster]

    # Find two most dissimilar items as seeds
    min_similarity = 1.0
    seed_a, seed_b = 0, 1
    for i in range(len(members)):
        for j in range(i + 1, len(members)):
            similarity = calculate_item_similarity(members[i], members[j], source_tags)
            if similarity < min_similarity:
                min_similarity = similarity
                seed_a, seed_b = i, j

    group1 = [members[seed_a]]
    group2 = [members[seed_b]]
    for index, item in enumerate(members):
        if index in (seed_a, seed_b):
            continue
        sim1 = calculate_item_similarity(item, members[seed_a], source_tags)
        sim2 = calculate_item_similarity(item, members[seed_b], source_tags)
        if sim1 > sim2:
            group1.append(item)
        else:
            group2.append(item)

    logger.debug(f"Split cluster of {len(members)} into {len(group1)} + {len(group2)}")
    return [
        {'items': group1, 'centroid': calculate_centroid(group1)},
        {'items': group2, 'centroid': calculate_centroid(group2)}
    ]


# --- Labels & Archetypes ---

def generate_cluster_label(cluster: Mapping[str, Any]) -> str:
    """Fallback name built from the cluster's three most common tags."""
    tag_counts: Dict[Tuple[str, str], int] = {}
    for item in cluster.get('items') or []:
        for tag_type, tags in _tags_of(item).items():
            for tag in _tag_list(tags):
                key = (tag_type, tag)
                tag_counts[key] = tag_counts.get(key, 0) + 1

    if not tag_counts:
        return UNNAMED_CLUSTER_LABEL

    top_tags = sorted(tag_counts.items(), key=lambda entry: entry[1], reverse=True)[:LABEL_TOP_TAGS]
    return ' & '.join(tag[:1].upper() + tag[1:] for (_, tag), _ in top_tags)


def _cluster_tag_set(cluster: Mapping[str, Any]) -> Set[str]:
    tag_set = set()
    for item in cluster.get('items') or []:
        tag_set |= _flatten_tags(_tags_of(item))
    return tag_set


def _as_archetype(archetype: Union[RoleArchetype, Mapping[str, Any]]) -> RoleArchetype:
    if isinstance(archetype, RoleArchetype):
        return archetype
    return RoleArchetype.model_validate(archetype)


def _archetype_score(tag_set: Set[str], archetype: RoleArchetype) -> float:
    if not archetype.core_skills:
        return 0.0
    match_count = 0
    for skill in archetype.core_skills:
        skill_lower = skill.lower()
        if skill_lower in tag_set or any(skill_lower in tag for tag in tag_set):
            match_count += 1
    return match_count / len(archetype.core_skills)


def calculate_archetype_match(cluster: Mapping[str, Any], archetype: Union[RoleArchetype, Mapping[str, Any]]) -> float:
    """Share of the archetype's core skills found among the cluster's tags."""
    return _archetype_score(_cluster_tag_set(cluster), _as_archetype(archetype))


def suggest_archetype(
    cluster: Mapping[str, Any],
    archetypes: Sequence[Union[RoleArchetype, Mapping[str, Any]]]
) -> Dict[str, Any]:
    """
    Picks the role archetype whose core skills best cover the cluster's tags.

    Returns:
        {"archetype": name or None, "confidence": float,
         "alternatives": top 3 [{"name", "score"}] by score}
    """
    tag_set = _cluster_tag_set(cluster)
    candidates = [_as_archetype(a) for a in archetypes or []]

    best_match = None
    best_score = 0.0
    scored = []
    for archetype in candidates:
        score = _archetype_score(tag_set, archetype)
        scored.append({'name': archetype.name, 'score': score})
        if score > best_score:
            best_score = score
            best_match = archetype

    scored.sort(key=lambda entry: entry['score'], reverse=True)
    return {
        'archetype': best_match.name if best_match else None,
        'confidence': best_score,
        'alternatives': scored[:3]
    }
