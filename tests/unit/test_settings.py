import pytest
from pydantic import ValidationError

from echelon_core.config import CONFIG_PATH_ENV, Settings, get_settings


def test_defaults():
    settings = Settings()

    assert settings.environment == "development"
    assert settings.advisory.requests_per_minute == 10
    assert settings.advisory.max_attempts == 3
    assert settings.advisory.circuit_failure_threshold == 5
    assert settings.simulation.checkpoint_interval == 6
    assert settings.simulation.share_inertia == 0.85
    assert settings.simulation.profit_margin == 0.25
    assert not settings.is_production


def test_nested_environment_variables(monkeypatch):
    monkeypatch.setenv("ECHELON_ADVISORY__REQUESTS_PER_MINUTE", "12")
    monkeypatch.setenv("ECHELON_ENVIRONMENT", "production")

    settings = get_settings()

    assert settings.advisory.requests_per_minute == 12
    assert settings.is_production


def test_yaml_overlay_sits_below_environment(monkeypatch, tmp_path):
    overlay = tmp_path / "echelon.yaml"
    overlay.write_text(
        "advisory:\n"
        "  model: gemini-test\n"
        "  requests_per_minute: 4\n"
        "simulation:\n"
        "  duration_max: 36\n"
    )
    monkeypatch.setenv(CONFIG_PATH_ENV, str(overlay))
    monkeypatch.setenv("ECHELON_ADVISORY__REQUESTS_PER_MINUTE", "20")

    settings = Settings()

    assert settings.advisory.model == "gemini-test"
    assert settings.advisory.requests_per_minute == 20
    assert settings.simulation.duration_max == 36


def test_explicit_arguments_win(monkeypatch):
    monkeypatch.setenv("ECHELON_ENVIRONMENT", "staging")
    assert Settings(environment="test").environment == "test"


def test_cache_returns_same_instance():
    assert get_settings() is get_settings()


@pytest.mark.parametrize(
    "section, values",
    [
        ("simulation", {"population_min": 10, "population_max": 5}),
        ("simulation", {"duration_min": 10, "duration_max": 2}),
        ("simulation", {"share_inertia": 1.5}),
        ("advisory", {"requests_per_minute": 0}),
        ("advisory", {"max_attempts": 0}),
    ],
)
def test_invalid_values_are_rejected(section, values):
    with pytest.raises(ValidationError):
        Settings(**{section: values})
