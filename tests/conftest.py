import pytest

from services.nikigai_engine.loader import DEFAULT_ARCHETYPE_LIBRARY_PATH, load_archetype_library_from_file


@pytest.fixture
def weighting_responses():
    """One response per context: joy (hobbies), meaning (role models), direction (future)."""
    return [
        {
            "store_as": "life_map.hobbies.childhood",
            "tags": {"skill_verb": ["drawing", "building"], "domain_topic": ["art"]},
        },
        {
            "store_as": "life_map.role_models",
            "tags": {"value": ["courage"], "skill_verb": ["building"]},
        },
        {
            "store_as": "life_map.future.desires",
            "tags": {"domain_topic": ["art"]},
        },
    ]


@pytest.fixture
def checkpoint_responses():
    """Answers as collected by the quiz flow, with bullets and extracted tags."""
    return [
        {
            "id": 1,
            "step_id": "hobbies_childhood",
            "store_as": "life_map.hobbies.childhood",
            "response_raw": "• Teaching kids\n• Coaching teams",
            "tags": {"skill_verb": ["teaching", "coaching"], "domain_topic": ["education"]},
        },
        {
            "id": 2,
            "step_id": "role_models",
            "store_as": "life_map.role_models",
            "response_raw": "My mentor taught me",
            "tags": {"skill_verb": ["teaching"], "value": ["growth"]},
        },
        {
            "id": 3,
            "step_id": "future",
            "store_as": "life_map.future.desires",
            "response_raw": "1. Build apps\n2. Ship products",
            "tags": {"skill_verb": ["building"], "domain_topic": ["technology"]},
        },
    ]


@pytest.fixture(scope="session")
def role_archetypes():
    return load_archetype_library_from_file(DEFAULT_ARCHETYPE_LIBRARY_PATH).archetypes
