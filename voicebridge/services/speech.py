"""OpenAI audio client for transcription and speech synthesis."""

from __future__ import annotations

import io

import httpx
from openai import AsyncOpenAI

from voicebridge.config import BotSettings, get_settings
from voicebridge.domain.languages import Language, normalize_detected_language
from voicebridge.domain.models import Transcription
from voicebridge.logging import logger


class OpenAISpeechClient:
    def __init__(self, settings: BotSettings | None = None, *, client: AsyncOpenAI | None = None) -> None:
        self.settings = settings or get_settings()
        speech_cfg = self.settings.speech
        if client is None:
            api_key, base_url = self._credentials()
            client = AsyncOpenAI(
                api_key=api_key,
                base_url=base_url,
                http_client=httpx.AsyncClient(timeout=speech_cfg.request_timeout_seconds),
                max_retries=0,
            )
        self._client = client

    def _credentials(self) -> tuple[str | None, str | None]:
        speech_cfg = self.settings.speech
        llm_key, llm_base_url = self.settings.llm.openai_like_credentials("openai")
        api_key = speech_cfg.api_key or llm_key
        base_url = str(speech_cfg.base_url) if speech_cfg.base_url else llm_base_url
        return (api_key.get_secret_value() if api_key else None), base_url

    async def transcribe(self, audio: bytes, *, language_hint: Language | None = None) -> Transcription:
        """Transcribe a voice clip; the detected language is mapped onto a code when known."""

        speech_cfg = self.settings.speech
        if len(audio) > speech_cfg.max_audio_bytes:
            raise ValueError(f"audio clip exceeds {speech_cfg.max_audio_bytes} bytes")

        audio_file = io.BytesIO(audio)
        audio_file.name = "voice.ogg"
        kwargs = {}
        if language_hint is not None:
            kwargs["language"] = language_hint.value

        response = await self._client.audio.transcriptions.create(
            model=speech_cfg.transcription_model,
            file=audio_file,
            response_format="verbose_json",
            **kwargs,
        )
        raw_language = getattr(response, "language", None)
        detected = normalize_detected_language(raw_language)
        if language_hint is not None and detected is None:
            detected = language_hint.value
        logger.info(
            "speech_transcribed",
            chars=len(response.text or ""),
            raw_language=raw_language,
            detected=detected,
            hinted=language_hint.value if language_hint else None,
        )
        return Transcription(text=(response.text or "").strip(), detected_language=detected)

    async def synthesize(self, text: str, language: Language) -> bytes:
        speech_cfg = self.settings.speech
        response = await self._client.audio.speech.create(
            model=speech_cfg.synthesis_model,
            voice=speech_cfg.voice,
            input=text,
            response_format="opus",
        )
        audio = response.content
        logger.info("speech_synthesized", language=language.value, chars=len(text), bytes=len(audio))
        return audio

    async def close(self) -> None:
        await self._client.close()


__all__ = ["OpenAISpeechClient"]
