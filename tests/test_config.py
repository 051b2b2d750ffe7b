import pytest

import config
from config import Settings


def test_module_level_getters():
    public = {name for name in vars(config) if name.startswith(("get_", "is_")) and callable(getattr(config, name))}
    assert public == {"is_production"}


@pytest.mark.parametrize(
    "vercel_env,node_env,expected",
    [(None, None, False), ("production", None, True), (None, "production", True), ("preview", "production", False)],
)
def test_is_production(monkeypatch, vercel_env, node_env, expected):
    monkeypatch.setattr(config.settings, "VERCEL_ENV", vercel_env)
    monkeypatch.setattr(config.settings, "NODE_ENV", node_env)
    assert config.is_production() is expected


def test_openrouter_models_split_and_trimmed():
    settings = Settings(OPENROUTER_MODELS=" a/one , ,b/two ")
    assert settings.openrouter_models == ["a/one", "b/two"]
