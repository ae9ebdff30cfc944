import pytest
from oauth_login.config import Settings

pytestmark = pytest.mark.unit


def _settings(**overrides) -> Settings:
    return Settings(_env_file=None, **overrides)


def test_settings_defaults_match_login_flow():
    cfg = _settings()
    assert cfg.session_cookie_name == "session_id"
    assert cfg.oauth_state_cookie_name == "oauth_state"
    assert cfg.session_expire_hours == 24
    assert cfg.session_cookie_samesite == "none"
    assert cfg.session_cookie_secure is True


def test_settings_normalizes_supported_algorithm():
    cfg = _settings(algorithm="hs512")
    assert cfg.algorithm == "HS512"


def test_settings_rejects_unsupported_algorithm():
    with pytest.raises(ValueError):
        _settings(algorithm="RS256")


def test_settings_normalizes_log_level():
    assert _settings(log_level=" debug ").log_level == "DEBUG"


@pytest.mark.parametrize("level", ["verbose", "", "TRACE"])
def test_settings_rejects_unknown_log_level(level):
    with pytest.raises(ValueError):
        _settings(log_level=level)


def test_settings_client_app_url_defaults_to_root_when_empty():
    cfg = _settings(client_app_url="")
    assert cfg.client_app_url == "/"


def test_settings_client_app_url_rejects_fragment():
    with pytest.raises(ValueError):
        _settings(client_app_url="https://app.example.com/#/home")


def test_settings_client_app_url_rejects_invalid_absolute_scheme():
    with pytest.raises(ValueError):
        _settings(client_app_url="ftp://app.example.com/")


def test_settings_client_app_url_accepts_absolute_http_url():
    cfg = _settings(client_app_url="http://localhost:5173")
    assert cfg.client_app_url == "http://localhost:5173"


def test_settings_client_app_url_rejects_relative_path():
    with pytest.raises(ValueError):
        _settings(client_app_url="dashboard")


def test_settings_samesite_is_normalized():
    cfg = _settings(session_cookie_samesite="Lax", session_cookie_secure=False)
    assert cfg.session_cookie_samesite == "lax"


def test_settings_rejects_unknown_samesite():
    with pytest.raises(ValueError):
        _settings(session_cookie_samesite="sometimes")


def test_settings_samesite_none_requires_secure_cookie():
    with pytest.raises(ValueError):
        _settings(session_cookie_samesite="none", session_cookie_secure=False)


@pytest.mark.parametrize("field", ["session_expire_hours", "oauth_state_expire_seconds"])
def test_settings_rejects_non_positive_lifetimes(field):
    with pytest.raises(ValueError):
        _settings(**{field: 0})


def test_settings_reads_environment(monkeypatch):
    monkeypatch.setenv("GITHUB_CLIENT_ID", "from-env")
    monkeypatch.setenv("SESSION_COOKIE_DOMAIN", "api.example.com")
    cfg = _settings()
    assert cfg.github_client_id == "from-env"
    assert cfg.session_cookie_domain == "api.example.com"


def test_settings_rejects_weak_secret_in_production():
    with pytest.raises(ValueError):
        _settings(environment="production", secret_key="replace-this-in-production")


def test_settings_accepts_strong_secret_in_production():
    cfg = _settings(environment="production", secret_key="a" * 32)
    assert cfg.secret_key == "a" * 32
