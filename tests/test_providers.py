from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from conftest import make_case
from mednexus_dashboard.analysis import (
    ChatCompletionProvider,
    KeywordPatternProvider,
    PatternType,
    build_provider,
)
from mednexus_dashboard.analysis.providers import parse_patterns
from mednexus_dashboard.config import ProviderSettings
from mednexus_dashboard.exceptions import (
    ProviderNotConfiguredError,
    ProviderResponseError,
    ProviderTimeoutError,
)

FABRY = {
    "id": "fabry",
    "name": "Fabry disease",
    "type": "rare_disease",
    "symptoms": ["burning pain", "angiokeratoma", "hypohidrosis", "corneal opacity"],
    "actions": ["Enzyme assay"],
}
CLUSTER = {
    "id": "cluster",
    "name": "Autoimmune cluster",
    "type": "symptom_cluster",
    "symptoms": ["fatigue", "rash"],
}

PATTERN_REPLY = {
    "patterns": [
        {
            "pattern_id": "gaucher",
            "confidence": 93,
            "pattern_type": "rare_disease",
            "description": "Gaucher disease",
            "recommended_actions": ["Enzyme test"],
        }
    ]
}


def _completion(content: str) -> dict:
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


def _chat_settings(**overrides) -> ProviderSettings:
    base = dict(
        id="groq",
        kind="chat_completion",
        display_name="Groq",
        base_url="https://llm.test/v1",
        model="test-model",
        api_key_env="GROQ_API_KEY",
    )
    base.update(overrides)
    return ProviderSettings(**base)


def test_keyword_provider_scores_by_symptom_overlap():
    provider = KeywordPatternProvider(ProviderSettings(id="local", patterns=(FABRY, CLUSTER)))
    case = make_case(symptoms=["Burning pain", "angiokeratoma", "rash", "fatigue"])
    matches = asyncio.run(provider.analyze(case))

    assert [m.pattern_id for m in matches] == ["cluster", "fabry"]
    assert matches[0].confidence == 100.0
    assert matches[1].confidence == 50.0
    assert matches[1].pattern_type is PatternType.RARE_DISEASE
    assert matches[1].recommended_actions == ["Enzyme assay"]


def test_keyword_provider_without_overlap_returns_nothing():
    provider = KeywordPatternProvider(ProviderSettings(id="local", patterns=(FABRY,)))
    assert asyncio.run(provider.analyze(make_case(symptoms=["cough"]))) == []


def test_chat_provider_posts_completion_and_parses_reply():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers.get("Authorization")
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=_completion(json.dumps(PATTERN_REPLY)))

    async def scenario():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            provider = ChatCompletionProvider(_chat_settings(), api_key="secret", client=client)
            return await provider.analyze(make_case())

    matches = asyncio.run(scenario())
    assert seen["url"] == "https://llm.test/v1/chat/completions"
    assert seen["auth"] == "Bearer secret"
    assert seen["body"]["model"] == "test-model"
    assert seen["body"]["messages"][0]["role"] == "system"
    assert [m.pattern_id for m in matches] == ["gaucher"]


def test_chat_provider_resolves_endpoint_from_metadata():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append((request.method, str(request.url)))
        if request.method == "GET":
            return httpx.Response(200, json={"endpoint": "https://broker.test/v1", "model": "zg-model"})
        body = json.loads(request.content)
        assert body["model"] == "zg-model"
        return httpx.Response(200, json=_completion("[]"))

    async def scenario():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            settings = _chat_settings(id="0g", base_url=None, api_key_env=None,
                                      metadata_url="https://broker.test/meta")
            return await ChatCompletionProvider(settings, client=client).analyze(make_case())

    assert asyncio.run(scenario()) == []
    assert calls == [
        ("GET", "https://broker.test/meta"),
        ("POST", "https://broker.test/v1/chat/completions"),
    ]


def test_chat_provider_without_key_is_not_configured():
    provider = build_provider(_chat_settings(), env={})
    assert provider.configured is False
    with pytest.raises(ProviderNotConfiguredError, match="Groq service not configured"):
        asyncio.run(provider.analyze(make_case()))


def test_chat_provider_reads_key_from_env():
    provider = build_provider(_chat_settings(), env={"GROQ_API_KEY": "k"})
    assert isinstance(provider, ChatCompletionProvider)
    assert provider.configured is True


def test_chat_provider_maps_http_errors():
    def handler(request):
        return httpx.Response(503)

    async def scenario():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            await ChatCompletionProvider(_chat_settings(), api_key="k", client=client).analyze(make_case())

    with pytest.raises(ProviderResponseError, match="503"):
        asyncio.run(scenario())


def test_chat_provider_maps_timeouts():
    def handler(request):
        raise httpx.ReadTimeout("slow", request=request)

    async def scenario():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            await ChatCompletionProvider(_chat_settings(), api_key="k", client=client).analyze(make_case())

    with pytest.raises(ProviderTimeoutError, match="timed out after 60s"):
        asyncio.run(scenario())


def test_parse_patterns_accepts_fenced_json_list():
    reply = "```json\n" + json.dumps(PATTERN_REPLY["patterns"]) + "\n```"
    matches = parse_patterns("p", reply)
    assert matches[0].confidence == 93


def test_parse_patterns_rejects_garbage():
    with pytest.raises(ProviderResponseError):
        parse_patterns("p", "I think it is lupus")
    with pytest.raises(ProviderResponseError):
        parse_patterns("p", json.dumps([{"pattern_id": "x", "confidence": 400, "pattern_type": "rare_disease"}]))
