"""AI review reply generation.

Providers are tried in order: OpenAI chat completions, then Google Gemini.
When neither key is configured the selected prompt template itself is used as
the reply (templates are complete, polite replies with the store name filled
in). When a key is configured but every provider fails, generation fails.
"""
import logging
import time
from typing import Callable, List, Optional

import httpx

from reviewhub.core.config import settings
from reviewhub.core.errors import ExternalServiceError
from reviewhub.schemas.ai_settings import STORE_NAME_PLACEHOLDER
from reviewhub.schemas.review import GeneratedReply, PromptContext
from reviewhub.services.auto_reply import DEFAULT_TEMPLATES, ReviewCategory

logger = logging.getLogger(__name__)

OPENAI_URL = "https://api.openai.com/v1/chat/completions"
GEMINI_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"

OPENAI_MAX_ATTEMPTS = 3
MAX_REPLY_TOKENS = 200
TEMPERATURE = 0.7

SYSTEM_PROMPT = "あなたは顧客サービスの専門家で、レビューへの返信作成を支援します。"


def _usable_key(key: Optional[str]) -> Optional[str]:
    # Placeholder values like "xxx" in .env files are treated as unset
    if key and len(key.strip()) > 10:
        return key.strip()
    return None


def build_prompt(review_text: str, rating: int, store_name: str,
                 business_type: Optional[str] = None, template: str = "") -> str:
    is_positive = rating >= 4
    response_type = "感謝" if is_positive else "改善への取り組み"
    tone = "感謝の気持ちを表現" if is_positive else "問題を真摯に受け止め、改善への意欲を示す"
    closing = (
        "今後ともよろしくお願いしますという気持ちを込める"
        if is_positive else "今後の改善策や連絡先を提示"
    )
    review_line = f'レビュー内容: "{review_text}"' if review_text.strip() else "レビュー内容: (コメントなし、星評価のみ)"

    lines = [
        f"あなたは {store_name} の{business_type or 'ビジネス'}の顧客サービス担当者です。",
        f"以下のGoogleレビューに対して、{response_type}を示す丁寧で心のこもった返信を日本語で作成してください。",
        "",
        review_line,
        f"評価: {rating}/5",
        "",
        "返信の条件:",
        "- 150文字以内",
        "- 敬語を使用",
        f"- {tone}",
        "- 顧客の具体的なコメントに言及",
        f"- {closing}",
    ]
    if template:
        lines += ["", "以下の文面の趣旨と語調に沿って作成してください:", template]
    lines += ["", "返信のみを出力してください。"]
    return "\n".join(lines)


class ReplyGenerator:
    def __init__(
        self,
        openai_api_key: Optional[str] = None,
        gemini_api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.Client] = None,
        fallback_enabled: Optional[bool] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.openai_api_key = _usable_key(openai_api_key)
        self.gemini_api_key = _usable_key(gemini_api_key)
        self.timeout = timeout or settings.REPLY_GENERATION_TIMEOUT_SECONDS
        self.client = client
        self.fallback_enabled = settings.REPLY_FALLBACK_ENABLED if fallback_enabled is None else fallback_enabled
        self.sleep = sleep

    @classmethod
    def from_settings(cls) -> "ReplyGenerator":
        return cls(
            openai_api_key=settings.OPENAI_API_KEY,
            gemini_api_key=settings.GEMINI_API_KEY,
        )

    def _post(self, url: str, **kwargs) -> httpx.Response:
        if self.client is not None:
            return self.client.post(url, timeout=self.timeout, **kwargs)
        with httpx.Client(timeout=self.timeout) as client:
            return client.post(url, **kwargs)

    def generate(self, review_text: str, rating: int, store_name: str,
                 prompt_context: Optional[PromptContext] = None) -> GeneratedReply:
        if rating < 1 or rating > 5:
            raise ValueError("Rating must be between 1 and 5")
        context = prompt_context or PromptContext()
        review_text = (review_text or "").strip()
        prompt = build_prompt(review_text, rating, store_name, context.business_type, context.custom_prompt)

        errors: List[str] = []
        if self.openai_api_key:
            try:
                return self._with_context(self._openai_reply(prompt, rating), context)
            except ExternalServiceError as e:
                logger.warning(f"OpenAI reply generation failed, trying next provider: {e}")
                errors.append(str(e))

        if self.gemini_api_key:
            try:
                return self._with_context(self._gemini_reply(prompt, rating), context)
            except ExternalServiceError as e:
                logger.warning(f"Gemini reply generation failed: {e}")
                errors.append(str(e))

        if errors:
            raise ExternalServiceError("; ".join(errors))

        if not self.fallback_enabled:
            raise ExternalServiceError("No AI provider configured (set OPENAI_API_KEY or GEMINI_API_KEY)")

        logger.warning("No AI provider key configured, using the prompt template as the reply")
        return self._with_context(self._template_reply(rating, store_name, context), context)

    @staticmethod
    def _with_context(reply: GeneratedReply, context: PromptContext) -> GeneratedReply:
        reply.metadata["used_custom_prompt"] = context.use_custom_prompt
        return reply

    @staticmethod
    def _metadata(rating: int, provider: str, **extra) -> dict:
        is_positive = rating >= 4
        meta = {
            "rating": rating,
            "is_positive": is_positive,
            "response_type": "感謝" if is_positive else "改善への取り組み",
            "provider": provider,
        }
        meta.update(extra)
        return meta

    def _openai_reply(self, prompt: str, rating: int) -> GeneratedReply:
        last_error = None
        for attempt in range(OPENAI_MAX_ATTEMPTS):
            if attempt > 0:
                self.sleep(2 ** attempt)
                logger.info(f"OpenAI retry {attempt + 1}/{OPENAI_MAX_ATTEMPTS}")
            try:
                response = self._post(
                    OPENAI_URL,
                    headers={
                        "Authorization": f"Bearer {self.openai_api_key}",
                        "Content-Type": "application/json",
                    },
                    json={
                        "model": settings.OPENAI_MODEL,
                        "messages": [
                            {"role": "system", "content": SYSTEM_PROMPT},
                            {"role": "user", "content": prompt},
                        ],
                        "max_tokens": MAX_REPLY_TOKENS,
                        "temperature": TEMPERATURE,
                    },
                )
            except httpx.TimeoutException as e:
                raise ExternalServiceError(f"OpenAI API timed out after {self.timeout}s", provider="OpenAI") from e
            except httpx.HTTPError as e:
                last_error = ExternalServiceError(f"OpenAI API request failed: {e}", provider="OpenAI")
                continue

            if response.status_code == 429:
                logger.info(f"OpenAI rate limited ({attempt + 1}/{OPENAI_MAX_ATTEMPTS})")
                last_error = ExternalServiceError("OpenAI API rate limited", provider="OpenAI")
                continue
            if response.status_code != 200:
                raise ExternalServiceError(
                    f"OpenAI API error ({response.status_code}): {response.text[:200]}", provider="OpenAI"
                )

            choices = response.json().get("choices") or []
            text = ((choices[0].get("message") or {}).get("content") or "") if choices else ""
            if not text.strip():
                raise ExternalServiceError("OpenAI returned an empty reply", provider="OpenAI")
            return GeneratedReply(
                reply=text.strip(),
                metadata=self._metadata(rating, "OpenAI", model=settings.OPENAI_MODEL, retries=attempt),
            )

        raise last_error or ExternalServiceError("OpenAI API: all retries failed", provider="OpenAI")

    def _gemini_reply(self, prompt: str, rating: int) -> GeneratedReply:
        try:
            response = self._post(
                GEMINI_URL.format(model=settings.GEMINI_MODEL),
                params={"key": self.gemini_api_key},
                headers={"Content-Type": "application/json"},
                json={
                    "contents": [{"parts": [{"text": prompt}]}],
                    "generationConfig": {
                        "maxOutputTokens": MAX_REPLY_TOKENS,
                        "temperature": TEMPERATURE,
                    },
                },
            )
        except httpx.TimeoutException as e:
            raise ExternalServiceError(f"Gemini API timed out after {self.timeout}s", provider="Gemini") from e
        except httpx.HTTPError as e:
            raise ExternalServiceError(f"Gemini API request failed: {e}", provider="Gemini") from e

        if response.status_code != 200:
            raise ExternalServiceError(
                f"Gemini API error ({response.status_code}): {response.text[:200]}", provider="Gemini"
            )

        try:
            text = response.json()["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError, ValueError):
            text = ""
        if not text.strip():
            raise ExternalServiceError("Gemini returned an empty reply", provider="Gemini")
        return GeneratedReply(
            reply=text.strip(),
            metadata=self._metadata(rating, "Google Gemini", model=settings.GEMINI_MODEL),
        )

    def _template_reply(self, rating: int, store_name: str, context: PromptContext) -> GeneratedReply:
        template = context.custom_prompt
        if not template:
            category = ReviewCategory.POSITIVE if rating >= 4 else ReviewCategory.NEGATIVE
            template = DEFAULT_TEMPLATES[category]
        reply = template.replace(STORE_NAME_PLACEHOLDER, store_name)
        return GeneratedReply(
            reply=reply,
            metadata=self._metadata(rating, "Template", is_test_reply=True),
        )
