# services/nikigai_engine/definitions.py
# Static tables for the Nikigai weighting and clustering engine.

# --- Tag types ---

TAG_TYPES = [
    'skill_verb',      # -ing verbs: "coaching", "designing"
    'domain_topic',    # fields and subjects: "education", "music"
    'value',           # what matters: "growth", "authenticity"
    'emotion',         # felt state while doing it
    'context',         # where / with whom it happens
    'problem_theme',   # problems the user is drawn to solve
    'persona_hint'     # who the user wants to serve
]

DEFAULT_SOURCE_TAGS = ['skill_verb', 'domain_topic', 'value']

# --- Context classification ---
# Question keys (store_as) grouped by the semantic context they signal.
# A response is in a context when its store_as equals one of the keys, or
# contains the key's second segment (e.g. "hobbies").

CONTEXT_CATEGORIES = {
    'joy': (
        'life_map.hobbies.childhood',
        'life_map.hobbies.highschool',
        'life_map.hobbies.current',
        'life_map.high_moments.childhood',
        'life_map.high_moments.highschool',
        'life_map.high_moments.current'
    ),
    'meaning': (
        'life_map.life_chapters.titles',
        'life_map.life_chapters.growth_and_struggle',
        'life_map.role_models',
        'life_map.experience.impact_created'
    ),
    'direction': (
        'life_map.future.desires',
        'life_map.future.top3_now'
    )
}

CONTEXTS = tuple(CONTEXT_CATEGORIES.keys())

# --- Scoring constants ---

# Joy dominates, meaning is secondary, direction is a tiebreaker.
BULLET_SCORE_COEFFICIENTS = {
    'joy_weight': 0.5,
    'meaning_weight': 0.35,
    'direction_weight': 0.15
}

DIVERSITY_BONUS_PER_DOMAIN = 0.1
DIVERSITY_BONUS_CAP = 0.3

# --- Similarity weights per tag type ---

SOURCE_TAG_WEIGHT = 1.5
VALUE_TAG_WEIGHT = 1.0
INCIDENTAL_TAG_WEIGHT = 0.3

# Share of members a tag must appear in to be part of a centroid
CENTROID_MEMBERSHIP_THRESHOLD = 0.3

LABEL_TOP_TAGS = 3
UNNAMED_CLUSTER_LABEL = 'Unnamed Cluster'

# --- Quality grading ---

QUALITY_WEIGHTS = {
    'coherence': 0.4,
    'distinctness': 0.4,
    'balance': 0.2
}

# Checked in order, first threshold met wins
GRADE_THRESHOLDS = [
    ('A', 0.8),
    ('B', 0.7),
    ('C', 0.6),
    ('D', 0.5)
]
FAILING_GRADE = 'F'

# --- Rule-based tag extraction vocabularies ---

SKILL_VERB_KEYWORDS = [
    'designing', 'building', 'creating', 'teaching', 'writing',
    'analyzing', 'managing', 'leading', 'coaching', 'facilitating',
    'organizing', 'planning', 'developing', 'researching', 'presenting'
]

DOMAIN_TOPIC_KEYWORDS = [
    'tech', 'technology', 'education', 'health', 'healthcare',
    'art', 'design', 'business', 'marketing', 'finance',
    'music', 'writing', 'psychology', 'coaching', 'consulting'
]

VALUE_KEYWORDS = [
    'growth', 'impact', 'creativity', 'connection', 'authenticity',
    'purpose', 'learning', 'community', 'innovation', 'service'
]

# Nouns that belong under 'value' but often get tagged as skills
VALUE_NOUNS_MISTAKEN_FOR_SKILLS = ['creativity', 'leadership', 'empathy', 'integrity']

# Extraction sanity thresholds (characters / tag counts)
SPARSE_RESPONSE_MIN_LENGTH = 100
SPARSE_RESPONSE_MIN_TAGS = 3
DENSE_RESPONSE_MAX_LENGTH = 50
DENSE_RESPONSE_MAX_TAGS = 10
