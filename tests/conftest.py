import pytest

from echelon_core.config import Settings, get_settings

from tests.fakes import FakeClock


@pytest.fixture(autouse=True)
def clear_settings_cache():
    # Ensure clean settings on every test
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()
