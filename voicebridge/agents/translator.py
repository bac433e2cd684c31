"""LLM agents for text translation and text-based language detection."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from pydantic_ai import Agent

from voicebridge.agents.model_factory import build_chat_model
from voicebridge.config import BotSettings, get_settings
from voicebridge.domain.languages import Language
from voicebridge.logging import logger

TRANSLATOR_INSTRUCTIONS = (
    "You are a professional translator. Translate the user's text exactly as requested. "
    "Return only the translation without any additional text or explanations."
)

DETECTOR_INSTRUCTIONS = (
    "You are a language detection expert. Analyze the given text and determine which "
    "language it is written in. Respond with ONLY the language code. If unsure, respond "
    "with the most likely language code."
)


@dataclass(slots=True)
class TranslationAgent:
    """Pair of chat agents sharing one model: a translator and a language detector."""

    translator: Agent[None, str]
    detector: Agent[None, str]

    @classmethod
    def build(cls, settings: BotSettings | None = None) -> TranslationAgent:
        settings = settings or get_settings()
        llm_cfg = settings.llm
        model = build_chat_model(llm_cfg)
        translator = Agent[None, str](
            model=model,
            instructions=TRANSLATOR_INSTRUCTIONS,
            model_settings={
                "temperature": llm_cfg.temperature,
                "max_tokens": 1000,
                "timeout": llm_cfg.request_timeout_seconds,
            },
        )
        detector = Agent[None, str](
            model=model,
            instructions=DETECTOR_INSTRUCTIONS,
            model_settings={
                "temperature": llm_cfg.temperature,
                "max_tokens": 10,
                "timeout": llm_cfg.request_timeout_seconds,
            },
        )
        return cls(translator=translator, detector=detector)

    async def translate(self, text: str, source: Language, target: Language) -> str:
        prompt = (
            f"Translate the following text from {source.display_name} ({source.value}) "
            f"to {target.display_name} ({target.value}):\n\n{text}"
        )
        result = await self.translator.run(prompt)
        translated = result.output.strip()
        logger.info("text_translated", source=source.value, target=target.value, chars=len(translated))
        return translated

    async def detect_language(self, text: str, candidates: Sequence[Language]) -> str:
        """Return the detector's answer as a lower-cased code; validation is the caller's job."""

        options = ", ".join(f"{language.value} ({language.display_name})" for language in candidates)
        prompt = (
            f"Allowed codes: {options}. Other ISO 639-1 codes are acceptable only if the text "
            f"is clearly in another language.\n\nDetect the language of this text: \"{text}\""
        )
        result = await self.detector.run(prompt)
        answer = result.output.strip().lower()
        code = answer.split()[0].strip(".,:;\"'") if answer else ""
        logger.info("text_language_detected", raw=answer, code=code)
        return code


__all__ = ["TranslationAgent"]
