import pytest
from pydantic import SecretStr

from docs_search_sync.config import Settings, get_settings, load_settings
from docs_search_sync.core.errors import ConfigurationError, SyncError


def make_settings(**overrides):
    values = {
        "algolia_app_id": "APPID",
        "algolia_api_key": SecretStr("admin-key"),
        "docs_index_name": "docs-test",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def test_complete_settings_validate():
    make_settings().validate_required()


@pytest.mark.parametrize(
    "field, env_name",
    [
        ("algolia_app_id", "ALGOLIA_APP_ID"),
        ("algolia_api_key", "ALGOLIA_API_KEY"),
        ("docs_index_name", "DOCS_INDEX_NAME"),
    ],
)
def test_missing_required_setting_is_fatal(field, env_name):
    cfg = make_settings(**{field: None})

    with pytest.raises(ConfigurationError) as excinfo:
        cfg.validate_required()

    assert f"`{env_name}` env var must be configured" in str(excinfo.value)
    assert isinstance(excinfo.value, SyncError)


def test_empty_api_key_is_missing():
    cfg = make_settings(algolia_api_key=SecretStr(""))
    with pytest.raises(ConfigurationError, match="ALGOLIA_API_KEY"):
        cfg.validate_required()


def test_app_id_checked_first():
    cfg = make_settings(algolia_app_id=None, docs_index_name=None)
    with pytest.raises(ConfigurationError, match="ALGOLIA_APP_ID"):
        cfg.validate_required()


def test_skip_on_error_defaults_off(monkeypatch):
    monkeypatch.delenv("ALGOLIA_SKIP_ON_ERROR", raising=False)
    monkeypatch.delenv("ALOGOLIA_SKIP_ON_ERROR", raising=False)
    assert make_settings().algolia_skip_on_error is False


@pytest.mark.parametrize("env_name", ["ALGOLIA_SKIP_ON_ERROR", "ALOGOLIA_SKIP_ON_ERROR"])
def test_skip_on_error_read_from_env(monkeypatch, env_name):
    monkeypatch.delenv("ALGOLIA_SKIP_ON_ERROR", raising=False)
    monkeypatch.delenv("ALOGOLIA_SKIP_ON_ERROR", raising=False)
    monkeypatch.setenv(env_name, "true")

    assert make_settings().algolia_skip_on_error is True


def test_required_settings_read_from_env(monkeypatch):
    monkeypatch.setenv("ALGOLIA_APP_ID", "ENVAPP")
    monkeypatch.setenv("ALGOLIA_API_KEY", "env-key")
    monkeypatch.setenv("DOCS_INDEX_NAME", "env-index")

    cfg = Settings(_env_file=None)

    assert cfg.algolia_app_id == "ENVAPP"
    assert cfg.algolia_api_key.get_secret_value() == "env-key"
    assert cfg.docs_index_name == "env-index"
    cfg.validate_required()


def test_front_matter_dir_follows_developer_docs_switch():
    cfg = make_settings(content_dir="docs", develop_docs_dir="develop-docs")
    assert cfg.front_matter_dir == "docs"

    cfg = make_settings(developer_docs=True, develop_docs_dir="develop-docs")
    assert cfg.front_matter_dir == "develop-docs"


def test_unparsable_value_is_configuration_error(monkeypatch):
    monkeypatch.delenv("ALOGOLIA_SKIP_ON_ERROR", raising=False)
    monkeypatch.setenv("ALGOLIA_SKIP_ON_ERROR", "enabled")

    with pytest.raises(ConfigurationError, match="(?i)skip_on_error"):
        load_settings(_env_file=None)


def test_settings_are_loaded_on_first_use(monkeypatch):
    monkeypatch.setenv("DOCS_INDEX_NAME", "lazy-index")
    get_settings.cache_clear()
    try:
        assert get_settings().docs_index_name == "lazy-index"
        assert get_settings() is get_settings()
    finally:
        get_settings.cache_clear()
