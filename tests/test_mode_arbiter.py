import asyncio

import httpx

from generation.orchestrator import GenerationOrchestrator
from services.mode_arbiter import ModeArbiter, is_online
from tests.conftest import FakeProvider, mcq_json


def _http(status=204, fail=False, calls=None):
    def handler(request):
        if calls is not None:
            calls.append(request)
        if fail:
            raise httpx.ConnectError("offline", request=request)
        return httpx.Response(status)

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def test_probe_success_means_online():
    calls = []
    assert asyncio.run(is_online("https://probe.example/204", http=_http(calls=calls))) is True
    assert calls[0].method == "HEAD"


def test_probe_failure_or_server_error_means_offline():
    assert asyncio.run(is_online("https://probe.example", http=_http(fail=True))) is False
    assert asyncio.run(is_online("https://probe.example", http=_http(status=503))) is False


def test_force_offline_skips_probe():
    calls = []
    assert asyncio.run(is_online("https://probe.example", http=_http(calls=calls), force_offline=True)) is False
    assert calls == []


def test_prepare_honours_force_offline_setting(settings):
    cfg = settings.model_copy(update={"force_offline": True})
    provider = FakeProvider()
    calls = []
    arbiter = ModeArbiter(GenerationOrchestrator([provider], cfg), http=_http(calls=calls))
    result = asyncio.run(arbiter.prepare("math", 2))

    assert result["mode"] == "offline"
    assert calls == []
    assert provider.prompts == []


def test_prepare_probes_configured_url(settings):
    cfg = settings.model_copy(update={"connectivity_probe_url": "https://probe.internal/ping"})
    provider = FakeProvider([mcq_json("Which gas do plants absorb during photosynthesis in daylight?")])
    calls = []
    arbiter = ModeArbiter(GenerationOrchestrator([provider], cfg), http=_http(calls=calls))
    result = asyncio.run(arbiter.prepare("biology", 1))

    assert result["mode"] == "online"
    assert str(calls[0].url) == "https://probe.internal/ping"


def test_prepare_online_uses_generation(settings):
    provider = FakeProvider([mcq_json("Which gas do plants absorb during photosynthesis in daylight?")])
    arbiter = ModeArbiter(GenerationOrchestrator([provider], settings), "https://probe.example", http=_http())
    result = asyncio.run(arbiter.prepare("biology", 1))

    assert result["mode"] == "online"
    assert result["source"] == "generated"
    assert len(result["questions"]) == 1


def test_prepare_offline_when_probe_fails(settings):
    provider = FakeProvider()
    arbiter = ModeArbiter(GenerationOrchestrator([provider], settings), "https://probe.example", http=_http(fail=True))
    result = asyncio.run(arbiter.prepare("chemistry", 2))

    assert result["mode"] == "offline"
    assert result["source"] == "local-bank"
    assert len(result["questions"]) == 2
    assert provider.prompts == []


def test_prepare_offline_without_providers_does_not_probe(settings):
    calls = []
    arbiter = ModeArbiter(GenerationOrchestrator([], settings), "https://probe.example", http=_http(calls=calls))
    result = asyncio.run(arbiter.prepare("physics", 1, objective="Electromagnetism"))

    assert result["mode"] == "offline"
    assert calls == []
    assert result["questions"][0]["subject"] == "physics"
