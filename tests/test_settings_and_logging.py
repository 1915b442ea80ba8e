from team_resolver.config import settings as settings_module
from team_resolver.config.settings import load_settings
from team_resolver.logging.setup import sensitive_data_filter


def test_invalid_log_level_falls_back_to_info(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "chatty")
    assert load_settings().log_level == "INFO"


def test_log_level_is_uppercased(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "debug")
    assert load_settings().log_level == "DEBUG"


def test_defaults_match_grid_limits():
    loaded = load_settings()
    assert loaded.live_page_size == 50
    assert loaded.resolution_cache_ttl_seconds == 24 * 60 * 60


def test_filter_masks_extra_values():
    record = {"extra": {"api_key": "abcdefghijkl", "team": "navi"}, "message": "hello"}
    assert sensitive_data_filter(record)
    assert record["extra"]["api_key"] == "abcd****ijkl"
    assert record["extra"]["team"] == "navi"


def test_filter_masks_known_secrets_in_messages(monkeypatch):
    monkeypatch.setattr(settings_module.settings, "grid_api_key", "grid-secret-123")
    record = {"extra": {}, "message": "POST with x-api-key grid-secret-123"}
    sensitive_data_filter(record)
    assert "grid-secret-123" not in record["message"]
