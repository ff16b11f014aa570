import pytest

from sondealert.config.settings import Settings


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Fully configured settings that never touch the process environment."""
    return Settings.model_validate(
        {
            "app": {"http_timeout_seconds": 5},
            "hub": {
                "base_url": "http://hub.test:8123/",
                "token": "secret-token",
                "entity_id": "person.trick",
            },
            "monitor": {
                "radius_km": 50,
                "notified_file": str(tmp_path / "notified.json"),
                "poll_interval_seconds": 600,
            },
        }
    )
