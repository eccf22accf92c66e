from generation.settings import GenerationSettings


def test_defaults_from_empty_environment(monkeypatch):
    for name in ("QGEN_PROVIDERS", "OPENAI_API_KEY", "MAX_PASSES", "RACE_PROVIDERS", "PROVIDER_TIMEOUT_SECONDS"):
        monkeypatch.delenv(name, raising=False)
    cfg = GenerationSettings.from_env()
    assert cfg.providers == ["openai", "huggingface", "remote"]
    assert cfg.openai_api_key is None
    assert cfg.max_passes == 3
    assert cfg.replacement_offset == 10
    assert cfg.race_providers is False
    assert cfg.duplicate_threshold == 0.4


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("QGEN_PROVIDERS", " HuggingFace ; openai;")
    monkeypatch.setenv("RACE_PROVIDERS", "yes")
    monkeypatch.setenv("MAX_PASSES", "5")
    monkeypatch.setenv("PROVIDER_TIMEOUT_SECONDS", "2.5")
    cfg = GenerationSettings.from_env()
    assert cfg.providers == ["huggingface", "openai"]
    assert cfg.race_providers is True
    assert cfg.max_passes == 5
    assert cfg.provider_timeout_seconds == 2.5


def test_connectivity_settings(monkeypatch):
    monkeypatch.delenv("CONNECTIVITY_PROBE_URL", raising=False)
    monkeypatch.delenv("FORCE_OFFLINE", raising=False)
    cfg = GenerationSettings.from_env()
    assert cfg.force_offline is False
    assert cfg.connectivity_probe_url == "https://www.gstatic.com/generate_204"

    monkeypatch.setenv("FORCE_OFFLINE", "1")
    monkeypatch.setenv("CONNECTIVITY_PROBE_URL", "http://gateway.local/health")
    cfg = GenerationSettings.from_env()
    assert cfg.force_offline is True
    assert cfg.connectivity_probe_url == "http://gateway.local/health"
