"""Tests for AI reply generation against mocked provider APIs."""
import httpx
import pytest

from reviewhub.core.errors import ExternalServiceError
from reviewhub.schemas.review import PromptContext
from reviewhub.services.reply_generator import ReplyGenerator, build_prompt

OPENAI_KEY = "sk-test-openai-key-123"
GEMINI_KEY = "gemini-test-key-123"


def openai_ok(text="ご来店ありがとうございました。"):
    return httpx.Response(200, json={"choices": [{"message": {"content": text}}]})


def gemini_ok(text="またのお越しをお待ちしております。"):
    return httpx.Response(200, json={"candidates": [{"content": {"parts": [{"text": text}]}}]})


def make_generator(handler, openai_key=OPENAI_KEY, gemini_key=None, fallback=True):
    sleeps = []
    generator = ReplyGenerator(
        openai_api_key=openai_key,
        gemini_api_key=gemini_key,
        timeout=5,
        client=httpx.Client(transport=httpx.MockTransport(handler)),
        fallback_enabled=fallback,
        sleep=sleeps.append,
    )
    return generator, sleeps


def test_openai_reply():
    requests = []

    def handler(request):
        requests.append(request)
        return openai_ok()

    generator, _ = make_generator(handler)
    result = generator.generate("美味しかった", 5, "Cafe Mori")

    assert result.reply == "ご来店ありがとうございました。"
    assert result.metadata["provider"] == "OpenAI"
    assert result.metadata["retries"] == 0
    assert result.metadata["used_custom_prompt"] is False
    assert requests[0].headers["Authorization"] == f"Bearer {OPENAI_KEY}"


def test_openai_rate_limit_is_retried_with_backoff():
    responses = iter([httpx.Response(429), httpx.Response(429), openai_ok()])
    generator, sleeps = make_generator(lambda request: next(responses))

    result = generator.generate("美味しかった", 5, "Cafe Mori")

    assert result.metadata["retries"] == 2
    assert sleeps == [2, 4]


def test_openai_server_error_falls_back_to_gemini():
    def handler(request):
        if "openai" in request.url.host:
            return httpx.Response(500, text="boom")
        assert request.url.params["key"] == GEMINI_KEY
        return gemini_ok()

    generator, sleeps = make_generator(handler, gemini_key=GEMINI_KEY)
    result = generator.generate("", 4, "Cafe Mori")

    assert result.metadata["provider"] == "Google Gemini"
    assert result.reply == "またのお越しをお待ちしております。"
    assert sleeps == []


def test_all_providers_failing_raises():
    generator, _ = make_generator(lambda request: httpx.Response(503), gemini_key=GEMINI_KEY)
    with pytest.raises(ExternalServiceError):
        generator.generate("まずい", 1, "Cafe Mori")


def test_timeout_is_not_retried():
    calls = []

    def handler(request):
        calls.append(request)
        raise httpx.ReadTimeout("timed out", request=request)

    generator, sleeps = make_generator(handler)
    with pytest.raises(ExternalServiceError) as exc:
        generator.generate("遅い", 2, "Cafe Mori")
    assert "timed out" in str(exc.value)
    assert len(calls) == 1
    assert sleeps == []


def test_template_fallback_without_keys():
    generator, _ = make_generator(lambda request: pytest.fail("no request expected"), openai_key=None)
    context = PromptContext(custom_prompt="Cafe Moriです。ありがとうございます。", use_custom_prompt=True)

    result = generator.generate("Great", 5, "Cafe Mori", context)

    assert result.reply == "Cafe Moriです。ありがとうございます。"
    assert result.metadata["provider"] == "Template"
    assert result.metadata["is_test_reply"] is True
    assert result.metadata["used_custom_prompt"] is True


def test_placeholder_key_counts_as_unset():
    generator, _ = make_generator(lambda request: pytest.fail("no request expected"), openai_key="xxx")
    assert generator.generate("Great", 5, "Cafe Mori").metadata["provider"] == "Template"


def test_no_keys_and_fallback_disabled_raises():
    generator, _ = make_generator(lambda request: openai_ok(), openai_key=None, fallback=False)
    with pytest.raises(ExternalServiceError):
        generator.generate("Great", 5, "Cafe Mori")


@pytest.mark.parametrize("rating", [0, 6])
def test_rating_out_of_range(rating):
    generator, _ = make_generator(lambda request: openai_ok())
    with pytest.raises(ValueError):
        generator.generate("text", rating, "Cafe Mori")


def test_prompt_mentions_store_and_template():
    prompt = build_prompt("美味しかった", 5, "Cafe Mori", "カフェ", template="感謝を伝える")
    assert "Cafe Mori" in prompt
    assert "カフェ" in prompt
    assert "感謝を伝える" in prompt
    assert "評価: 5/5" in prompt


def test_prompt_for_rating_only_review():
    prompt = build_prompt("", 3, "Cafe Mori")
    assert "コメントなし" in prompt
