from pathlib import Path

import pytest

from flipforge.config import build_settings, get_settings, load_config
from flipforge.exceptions import ConfigurationError


def test_defaults():
    settings = build_settings({}, env={})

    assert settings.oracle.model == "gpt-4o-mini"
    assert settings.oracle.api_key is None
    assert settings.pipeline.max_candidates == 10000
    assert settings.pipeline.batch_size == 80
    assert set(settings.niche_contexts) == {"lenders", "payments", "ads", "brandable"}
    assert [p.id for p in settings.personas] == ["lenders", "payments", "ads", "brandable"]


def test_api_key_comes_from_environment():
    settings = build_settings({}, env={"OPENAI_API_KEY": "sk-test"})

    assert settings.require_api_key() == "sk-test"


def test_missing_api_key_raises():
    with pytest.raises(ConfigurationError, match="OPENAI_API_KEY"):
        build_settings({}, env={}).require_api_key()


def test_sections_override_defaults():
    settings = build_settings({
        "oracle": {"model": "gpt-4o", "max_retries": 5},
        "pipeline": {"default_top_k": 25},
        "niche_contexts": {"gaming": "Target: game studios."},
        "personas": [{"id": "gaming", "name": "Gaming", "weights": {"buyerIntent": 0}}],
    }, env={})

    assert settings.oracle.model == "gpt-4o"
    assert settings.oracle.max_retries == 5
    assert settings.pipeline.default_top_k == 25
    assert settings.niche_contexts["gaming"] == "Target: game studios."
    assert "lenders" in settings.niche_contexts
    assert list(settings.persona_map()) == ["gaming"]
    assert settings.personas[0].weights.buyer_intent == 0
    assert settings.personas[0].weights.brandability == 3.5


def test_unknown_setting_is_rejected():
    with pytest.raises(ConfigurationError, match="Unknown pipeline setting"):
        build_settings({"pipeline": {"batchsize": 10}}, env={})


def test_invalid_persona_is_rejected():
    with pytest.raises(ConfigurationError, match="Invalid persona"):
        build_settings({"personas": [{"name": "no id"}]}, env={})


def test_load_config_from_yaml(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("pipeline:\n  max_top_k: 50\n")

    assert load_config(str(path)) == {"pipeline": {"max_top_k": 50}}
    assert get_settings(str(path)).pipeline.max_top_k == 50


def test_load_config_errors(tmp_path):
    with pytest.raises(ConfigurationError, match="not found"):
        load_config(str(tmp_path / "missing.yaml"))

    bad = tmp_path / "bad.yaml"
    bad.write_text("pipeline: [unclosed\n")
    with pytest.raises(ConfigurationError, match="Invalid config"):
        load_config(str(bad))

    listing = tmp_path / "list.yaml"
    listing.write_text("- a\n- b\n")
    with pytest.raises(ConfigurationError, match="mapping"):
        load_config(str(listing))


def test_missing_default_config_is_empty(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("FLIPFORGE_CONFIG", raising=False)

    assert load_config() == {}


def test_bundled_config_covers_every_niche_mode():
    bundled = Path(__file__).resolve().parent.parent / "config" / "config.yaml"
    settings = build_settings(load_config(str(bundled)), env={})

    assert set(settings.persona_map()) == set(settings.niche_contexts)


def test_score_contexts_can_be_overridden():
    settings = build_settings({"score_contexts": {"ads": "Ad buyers."}}, env={})

    assert settings.score_contexts["ads"] == "Ad buyers."
    assert settings.score_contexts["lenders"].startswith("The target buyer is a lending company")
