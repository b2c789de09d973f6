import pytest
from pydantic import ValidationError

from rotapro.config import Settings


def test_allowed_origins_accept_comma_separated_env(monkeypatch):
    monkeypatch.setenv("ROTAPRO_FRONTEND_ALLOWED_ORIGINS", "https://a.example, https://b.example")

    assert Settings().frontend_allowed_origins == ("https://a.example", "https://b.example")


def test_allowed_origins_accept_json_list(monkeypatch):
    monkeypatch.setenv("ROTAPRO_FRONTEND_ALLOWED_ORIGINS", '["https://a.example"]')

    assert Settings().frontend_allowed_origins == ("https://a.example",)


def test_provider_settings_from_env(monkeypatch):
    monkeypatch.setenv("ROTAPRO_OSRM_BASE_URL", "http://localhost:5000")
    monkeypatch.setenv("ROTAPRO_SEQUENCING_METRIC", "distance")
    monkeypatch.setenv("ROTAPRO_OSRM_MAX_COORDINATES_PER_REQUEST", "50")

    settings = Settings()

    assert settings.osrm_base_url == "http://localhost:5000"
    assert settings.sequencing_metric == "distance"
    assert settings.osrm_max_coordinates_per_request == 50


def test_coordinate_ceiling_must_allow_a_pair():
    with pytest.raises(ValidationError):
        Settings(osrm_max_coordinates_per_request=1)
