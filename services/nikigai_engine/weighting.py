# services/nikigai_engine/weighting.py
# Tag frequencies, context weights and bullet/cluster scores for Nikigai responses.

import logging
import math
import re
from typing import Dict, Any, List, Mapping, Sequence, FrozenSet, Iterable, Optional

from .definitions import (
    CONTEXT_CATEGORIES,
    BULLET_SCORE_COEFFICIENTS,
    DIVERSITY_BONUS_PER_DOMAIN,
    DIVERSITY_BONUS_CAP
)

logger = logging.getLogger(__name__)

FrequencyMap = Dict[str, Dict[str, Any]]

BULLET_PATTERNS = [
    re.compile(r'^[•\-\*]\s+(.+)$', re.MULTILINE),  # • - * bullets
    re.compile(r'^\d+\.\s+(.+)$', re.MULTILINE),    # 1. 2. 3. numbers
    re.compile(r'^[a-z]\)\s+(.+)$', re.MULTILINE)   # a) b) c) letters
]


def round2(value: float) -> float:
    """Rounds half-up to 2 decimals (matches the scores stored by the web client)."""
    return math.floor(value * 100 + 0.5) / 100


def tag_key(tag_type: str, tag: str) -> str:
    return f"{tag_type}:{tag}"


def _response_tags(response: Mapping[str, Any]) -> Mapping[str, Any]:
    # Rows loaded from nikigai_responses carry tags under tags_extracted
    return response.get('tags') or response.get('tags_extracted') or {}


def _iter_tag_list(tag_list: Any) -> Iterable[str]:
    if isinstance(tag_list, (list, tuple)):
        return tag_list
    if isinstance(tag_list, (set, frozenset)):
        return sorted(tag_list)
    return ()


def response_tag_map(response: Mapping[str, Any]) -> Dict[str, List[str]]:
    """The response's tags as plain lists. Values that are not tag lists count as no tags."""
    return {
        tag_type: list(_iter_tag_list(tag_list))
        for tag_type, tag_list in _response_tags(response).items()
    }


# --- Context Classification ---

def _segment_marker(question_key: str) -> Optional[str]:
    segments = question_key.split('.')
    return segments[1] if len(segments) > 1 else None


def classify_response_contexts(store_as: Optional[str]) -> FrozenSet[str]:
    """Returns the contexts (joy, meaning, direction) a question key belongs to."""
    if not store_as:
        return frozenset()

    matched = set()
    for context, question_keys in CONTEXT_CATEGORIES.items():
        for question_key in question_keys:
            marker = _segment_marker(question_key)
            if store_as == question_key or (marker and marker in store_as):
                matched.add(context)
                break
    return frozenset(matched)


# --- Frequencies & Weights ---

def calculate_tag_frequencies(responses: Sequence[Mapping[str, Any]]) -> FrequencyMap:
    """
    Counts, per (tag_type, tag), how many responses in each context contain it.
    A response matching several contexts counts once in each.
    """
    frequencies: FrequencyMap = {}

    for response in responses or []:
        contexts = classify_response_contexts(response.get('store_as'))
        if not contexts:
            logger.debug(f"Response '{response.get('store_as')}' matches no weighting context")

        for tag_type, tag_list in _response_tags(response).items():
            for tag in _iter_tag_list(tag_list):
                key = tag_key(tag_type, tag)
                if key not in frequencies:
                    frequencies[key] = {
                        'tag': tag,
                        'tag_type': tag_type,
                        'joy_count': 0,
                        'meaning_count': 0,
                        'direction_count': 0
                    }
                for context in contexts:
                    frequencies[key][f"{context}_count"] += 1

    return frequencies


def calculate_weights(frequencies: FrequencyMap) -> FrequencyMap:
    """Normalizes each context count by that context's total across all tags."""
    totals = {'joy': 0, 'meaning': 0, 'direction': 0}
    for freq in frequencies.values():
        for context in totals:
            totals[context] += freq[f"{context}_count"]

    weighted: FrequencyMap = {}
    for key, freq in frequencies.items():
        weighted[key] = dict(freq)
        for context, total in totals.items():
            weighted[key][f"{context}_weight"] = freq[f"{context}_count"] / total if total > 0 else 0.0

    return weighted


def calculate_bullet_score(tag_weights: Mapping[str, Any]) -> float:
    """bullet_score = 0.5*joy + 0.35*meaning + 0.15*direction, rounded to 2 decimals."""
    score = sum(
        coefficient * (tag_weights.get(field) or 0)
        for field, coefficient in BULLET_SCORE_COEFFICIENTS.items()
    )
    return round2(score)


def rank_weighted_tags(weighted: FrequencyMap) -> List[Dict[str, Any]]:
    scored = [
        {**data, 'bullet_score': calculate_bullet_score(data)}
        for data in weighted.values()
    ]
    # sort is stable, equal scores keep first-seen order
    scored.sort(key=lambda record: record['bullet_score'], reverse=True)
    return scored


def process_tag_weights(responses: Sequence[Mapping[str, Any]]) -> List[Dict[str, Any]]:
    """Frequencies -> weights -> bullet scores, highest score first."""
    frequencies = calculate_tag_frequencies(responses)
    weighted = calculate_weights(frequencies)
    scored = rank_weighted_tags(weighted)
    logger.info(f"Scored {len(scored)} distinct tags from {len(responses or [])} responses")
    return scored


# --- Item & Response Scores ---

def score_item(tags: Mapping[str, Any], weighted: FrequencyMap) -> float:
    """Mean bullet score of an item's tags that have weights; 0 when none do."""
    scores = [
        calculate_bullet_score(weighted[tag_key(tag_type, tag)])
        for tag_type, tag_list in (tags or {}).items()
        for tag in _iter_tag_list(tag_list)
        if tag_key(tag_type, tag) in weighted
    ]
    if not scores:
        return 0.0
    return round2(sum(scores) / len(scores))


def build_response_tag_weights(response: Mapping[str, Any], weighted: FrequencyMap) -> Dict[str, Dict[str, float]]:
    """Weights and bullet score for each tag of a single response, keyed 'type:tag'."""
    response_weights = {}
    for tag_type, tag_list in _response_tags(response).items():
        for tag in _iter_tag_list(tag_list):
            key = tag_key(tag_type, tag)
            if key in weighted:
                response_weights[key] = {
                    'joy_weight': weighted[key]['joy_weight'],
                    'meaning_weight': weighted[key]['meaning_weight'],
                    'direction_weight': weighted[key]['direction_weight'],
                    'bullet_score': calculate_bullet_score(weighted[key])
                }
    return response_weights


# --- Cluster Scores ---

def calculate_cluster_score(cluster: Mapping[str, Any]) -> float:
    """Average item bullet score plus a domain diversity bonus (max +0.3)."""
    items = cluster.get('items') or []
    if not items:
        return 0.0

    total_score = 0.0
    domains = set()
    for item in items:
        total_score += item.get('bullet_score') or 0
        domains.update(_iter_tag_list((item.get('tags') or {}).get('domain_topic')))

    avg_score = total_score / len(items)
    diversity_bonus = min(len(domains) * DIVERSITY_BONUS_PER_DOMAIN, DIVERSITY_BONUS_CAP)
    return round2(avg_score + diversity_bonus)


def sort_clusters_by_score(clusters: Sequence[Mapping[str, Any]]) -> List[Dict[str, Any]]:
    scored = [{**cluster, 'score': calculate_cluster_score(cluster)} for cluster in clusters]
    scored.sort(key=lambda c: c['score'], reverse=True)
    return scored


# --- Bullet Extraction ---

def extract_bullet_points(text: Optional[str]) -> List[str]:
    """
    Splits a free-text answer into bullet items. The first bullet style found
    wins; without any bullets every non-empty line is an item.
    """
    if not text:
        return []

    for pattern in BULLET_PATTERNS:
        matches = pattern.findall(text)
        if matches:
            return [m.strip() for m in matches]

    return [line.strip() for line in text.split('\n') if line.strip()]
