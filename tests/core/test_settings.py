import pytest
from pydantic import ValidationError

from config.settings import ClusteringSettings, AppSettings
from services.nikigai_engine.models import ClusteringParams

def test_clustering_settings_defaults(monkeypatch):
    for name in ("SIMILARITY_THRESHOLD", "MIN_MERGE_SIMILARITY", "SOURCE_TAGS", "MIN_ITEMS_PER_CLUSTER", "MAX_MERGE_ITERATIONS"):
        monkeypatch.delenv(f"NIKIGAI_{name}", raising=False)

    settings = ClusteringSettings()

    assert settings.similarity_threshold == 0.25
    assert settings.min_merge_similarity == 0.1
    assert settings.source_tags == ["skill_verb", "domain_topic", "value"]
    assert settings.min_items_per_cluster == 3
    assert settings.max_merge_iterations is None

def test_clustering_settings_from_env(monkeypatch):
    monkeypatch.setenv("NIKIGAI_SIMILARITY_THRESHOLD", "0.4")
    monkeypatch.setenv("NIKIGAI_SOURCE_TAGS", '["skill_verb", "value"]')
    monkeypatch.setenv("NIKIGAI_MAX_MERGE_ITERATIONS", "50")

    settings = ClusteringSettings()

    assert settings.similarity_threshold == 0.4
    assert settings.source_tags == ["skill_verb", "value"]
    assert settings.max_merge_iterations == 50

def test_clustering_settings_rejects_out_of_range(monkeypatch):
    monkeypatch.setenv("NIKIGAI_MIN_MERGE_SIMILARITY", "1.5")

    with pytest.raises(ValidationError):
        ClusteringSettings()

def test_to_params(monkeypatch):
    monkeypatch.setenv("NIKIGAI_SIMILARITY_THRESHOLD", "0.3")

    params = ClusteringSettings().to_params()

    assert isinstance(params, ClusteringParams)
    assert params.similarity_threshold == 0.3

def test_app_settings_from_env(monkeypatch):
    monkeypatch.setenv("NIKIGAI_LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("NIKIGAI_ARCHETYPE_LIBRARY_PATH", "/etc/nikigai/archetypes.yml")
    monkeypatch.setenv("NIKIGAI_CORS_ORIGINS", '["https://findmyflow.app"]')

    settings = AppSettings()

    assert settings.log_level == "DEBUG"
    assert settings.archetype_library_path == "/etc/nikigai/archetypes.yml"
    assert settings.cors_origins == ["https://findmyflow.app"]
