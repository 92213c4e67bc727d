# services/nikigai_engine/tagging.py
# Keyword fallback for tag extraction and sanity checks on extracted tags.
# The model-backed extractor lives outside this package; these run when it is
# unavailable and to flag suspicious extractions before clustering.

import logging
from typing import Dict, Any, List, Mapping, Optional

from .definitions import (
    TAG_TYPES,
    SKILL_VERB_KEYWORDS,
    DOMAIN_TOPIC_KEYWORDS,
    VALUE_KEYWORDS,
    VALUE_NOUNS_MISTAKEN_FOR_SKILLS,
    SPARSE_RESPONSE_MIN_LENGTH,
    SPARSE_RESPONSE_MIN_TAGS,
    DENSE_RESPONSE_MAX_LENGTH,
    DENSE_RESPONSE_MAX_TAGS
)

logger = logging.getLogger(__name__)


def empty_tag_map() -> Dict[str, List[str]]:
    return {tag_type: [] for tag_type in TAG_TYPES}


def rule_based_tag_extraction(text: Optional[str]) -> Dict[str, List[str]]:
    """Tags a response by plain keyword containment. Only skills, domains and values are found."""
    if not text or not text.strip():
        return empty_tag_map()

    lower_text = text.lower()
    extracted = empty_tag_map()
    extracted['skill_verb'] = [v for v in SKILL_VERB_KEYWORDS if v in lower_text]
    extracted['domain_topic'] = [d for d in DOMAIN_TOPIC_KEYWORDS if d in lower_text]
    extracted['value'] = [v for v in VALUE_KEYWORDS if v in lower_text]

    logger.debug(f"Rule-based extraction found {sum(len(v) for v in extracted.values())} tags")
    return extracted


def validate_tag_extraction(response_text: str, extracted_tags: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Checks an extraction for common mistakes.

    Returns:
        {"is_valid": bool, "total_tags": int, "issues": [...], "message": str}.
        Only a 'critical' issue makes the extraction invalid.
    """
    issues: List[Dict[str, Any]] = []
    response_length = len(response_text or '')
    total_tags = sum(len(tags or []) for tags in extracted_tags.values())

    if response_length > SPARSE_RESPONSE_MIN_LENGTH and total_tags < SPARSE_RESPONSE_MIN_TAGS:
        issues.append({
            'issue': 'sparse_extraction',
            'severity': 'high',
            'message': 'User provided detailed response but few tags extracted'
        })

    if response_length < DENSE_RESPONSE_MAX_LENGTH and total_tags > DENSE_RESPONSE_MAX_TAGS:
        issues.append({
            'issue': 'over_extraction',
            'severity': 'medium',
            'message': 'Short response but many tags extracted'
        })

    if total_tags == 0:
        issues.append({
            'issue': 'no_tags_extracted',
            'severity': 'critical',
            'message': 'No tags extracted from response'
        })

    # skill_verb should hold -ing forms, not value nouns
    for tag in extracted_tags.get('skill_verb') or []:
        if tag.lower() in VALUE_NOUNS_MISTAKEN_FOR_SKILLS:
            issues.append({
                'tag': tag,
                'category': 'skill_verb',
                'issue': 'value_in_skill_verb',
                'severity': 'medium',
                'suggestion': f"\"{tag}\" should likely be in 'value' category"
            })

    if issues:
        message = 'Extraction concerns: ' + '; '.join(
            issue.get('message') or issue.get('suggestion') for issue in issues
        )
        logger.warning(message)
    else:
        message = f"Extracted {total_tags} tags successfully"

    return {
        'is_valid': not any(issue['severity'] == 'critical' for issue in issues),
        'total_tags': total_tags,
        'issues': issues,
        'message': message
    }
