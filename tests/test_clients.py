import json
from types import SimpleNamespace

import httpx
import pytest

from src.codeprep.services.evaluator import (
    EvaluationRequest,
    EvaluatorClient,
    EvaluatorUnavailableError,
    build_evaluation_request,
    parse_evaluation_result,
)
from src.codeprep.services.text_generation import GenerationStatus, TextGenerationClient
from src.codeprep.utils.languages import get_language_id, get_language_name

REQUEST = EvaluationRequest(source_code="print(1)", language_id=71, stdin=["1"], expected_outputs=["1"])


def text_client(handler) -> TextGenerationClient:
    return TextGenerationClient(
        "https://llm.test/v1/chat/completions",
        api_key="key",
        model="test-model",
        transport=httpx.MockTransport(handler),
    )


def evaluator_client(handler) -> EvaluatorClient:
    return EvaluatorClient("https://judge.test/run", api_key="judge-key", transport=httpx.MockTransport(handler))


async def test_completion_success():
    seen = {}

    def handler(request):
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"choices": [{"message": {"content": "  Hello there.  "}}]})

    result = await text_client(handler).complete("Say hi", max_tokens=10)

    assert result.status == GenerationStatus.SUCCESS
    assert result.text == "Hello there."
    assert seen["auth"] == "Bearer key"
    assert seen["body"]["model"] == "test-model"
    assert seen["body"]["max_tokens"] == 10


async def test_completion_without_content_is_degraded():
    result = await text_client(lambda request: httpx.Response(200, json={"choices": []})).complete("hi")

    assert result.status == GenerationStatus.DEGRADED
    assert result.text_or("fallback") == "fallback"


async def test_completion_with_blank_content_is_degraded():
    handler = lambda request: httpx.Response(200, json={"choices": [{"message": {"content": " "}}]})

    result = await text_client(handler).complete("hi")

    assert result.status == GenerationStatus.DEGRADED


async def test_completion_http_error_fails():
    result = await text_client(lambda request: httpx.Response(429, json={"error": "rate limited"})).complete("hi")

    assert result.status == GenerationStatus.FAILED
    assert result.text_or("fallback") == "fallback"


async def test_completion_timeout_fails():
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    result = await text_client(handler).complete("hi")

    assert result.status == GenerationStatus.FAILED
    assert result.error == "Timeout"


async def test_completion_without_key_fails_without_calling_out():
    calls = []
    client = TextGenerationClient(
        "https://llm.test", api_key=None, model="m", transport=httpx.MockTransport(lambda r: calls.append(r))
    )

    result = await client.complete("hi")

    assert result.status == GenerationStatus.FAILED
    assert calls == []


async def test_evaluator_parses_reply():
    seen = {}

    def handler(request):
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={
            "status": "Wrong Answer",
            "runtime": 0.05,
            "memory": 2048,
            "testCasesPassed": 2,
            "totalTestCases": 3,
        })

    result = await evaluator_client(handler).evaluate(REQUEST)

    assert result.status == "wrong_answer"
    assert result.runtime == "0.05"
    assert result.memory == "2048"
    assert (result.test_cases_passed, result.total_test_cases) == (2, 3)
    assert seen["body"] == REQUEST.to_payload()


async def test_evaluator_http_error_raises():
    with pytest.raises(EvaluatorUnavailableError):
        await evaluator_client(lambda request: httpx.Response(502, text="bad gateway")).evaluate(REQUEST)


async def test_evaluator_timeout_raises():
    def handler(request):
        raise httpx.ConnectTimeout("timed out", request=request)

    with pytest.raises(EvaluatorUnavailableError):
        await evaluator_client(handler).evaluate(REQUEST)


async def test_evaluator_non_json_raises():
    with pytest.raises(EvaluatorUnavailableError):
        await evaluator_client(lambda request: httpx.Response(200, text="<html>")).evaluate(REQUEST)


def test_parse_accepts_wrapped_snake_case():
    result = parse_evaluation_result({"data": {"status": "accepted", "test_cases_passed": "1", "total_test_cases": 1}})

    assert result.status == "accepted"
    assert result.test_cases_passed == 1
    assert result.runtime is None


def test_parse_rejects_missing_counts():
    with pytest.raises(EvaluatorUnavailableError):
        parse_evaluation_result({"status": "accepted"})


def test_request_follows_stored_test_case_order():
    problem = SimpleNamespace(test_cases=[{"input": "b", "output": "2"}, {"input": "a", "output": "1"}])

    request = build_evaluation_request(problem, source_code="x", language_id=63)

    assert request.stdin == ["b", "a"]
    assert request.expected_outputs == ["2", "1"]


@pytest.mark.parametrize("language, name, language_id", [
    ("Python", "Python", 71),
    ("python3", "Python", 71),
    ("71", "Python", 71),
    ("cpp", "C++", 54),
    ("js", "JavaScript", 63),
    ("Haskell", "Haskell", None),
])
def test_language_lookup(language, name, language_id):
    assert get_language_name(language) == name
    assert get_language_id(language) == language_id


def test_language_name_of_none():
    assert get_language_name(None) == "unknown"
