# FILE: services/transcription.py
"""
Speech-to-text behind a uniform transcript contract.

DeepgramTranscriber downloads the audio reference and posts it to the
Deepgram pre-recorded endpoint with punctuation/smart formatting on and
diarization off.
"""

import asyncio
from typing import Any, Dict, List, Optional, Protocol

import httpx

from config import (
    DEEPGRAM_API_KEY,
    DEEPGRAM_BASE_URL,
    DEEPGRAM_MODEL,
    DEFAULT_LANGUAGE,
    TRANSCRIPTION_MAX_ATTEMPTS,
    TRANSCRIPTION_TIMEOUT_SECONDS,
)
from core.errors import TranscriptionError
from core.logs import get_logger
from models.voice import TranscriptionResult

logger = get_logger("transcription")

# HTTP status codes worth retrying (server errors, rate limits)
RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}
RETRY_DELAY_SECONDS = 1.0
DEFAULT_CONFIDENCE = 0.8
MAX_ALTERNATIVES = 2


class SpeechToText(Protocol):
    async def transcribe(
        self,
        audio_url: str,
        language: Optional[str] = None,
        audio_format: Optional[str] = None,
    ) -> TranscriptionResult:
        ...


def parse_deepgram_response(payload: Dict[str, Any], language_hint: Optional[str]) -> TranscriptionResult:
    """
    Map a Deepgram pre-recorded response to a TranscriptionResult.
    Alternatives keep the provider's order, primary excluded, at most two.
    """
    channels = (payload.get("results") or {}).get("channels") or []
    if not channels:
        raise TranscriptionError("No transcription result: response has no channels")

    channel = channels[0]
    alternatives: List[Dict[str, Any]] = channel.get("alternatives") or []
    if not alternatives or alternatives[0].get("transcript") is None:
        raise TranscriptionError("No transcription result: channel has no alternatives")

    primary = alternatives[0]
    confidence = primary.get("confidence")
    if confidence is None:
        confidence = DEFAULT_CONFIDENCE

    others = [
        alt["transcript"]
        for alt in alternatives[1 : 1 + MAX_ALTERNATIVES]
        if alt.get("transcript")
    ]

    return TranscriptionResult(
        text=primary["transcript"].strip(),
        confidence=min(max(float(confidence), 0.0), 1.0),
        language_detected=channel.get("detected_language") or language_hint or DEFAULT_LANGUAGE,
        alternative_transcriptions=others,
    )


class DeepgramTranscriber:
    """
    Deepgram REST client.

    Raises TranscriptionError when the key is missing, the audio cannot be
    fetched, the provider fails after retries, or no transcript comes back.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
        max_attempts: Optional[int] = None,
        retry_delay: float = RETRY_DELAY_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key if api_key is not None else DEEPGRAM_API_KEY
        self.base_url = (base_url or DEEPGRAM_BASE_URL).rstrip("/")
        self.model = model or DEEPGRAM_MODEL
        self.timeout = timeout or TRANSCRIPTION_TIMEOUT_SECONDS
        self.max_attempts = max_attempts or TRANSCRIPTION_MAX_ATTEMPTS
        self.retry_delay = retry_delay
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    def _params(self, language: str) -> Dict[str, str]:
        return {
            "model": self.model,
            "language": language,
            "smart_format": "true",
            "punctuate": "true",
            "diarize": "false",
            "alternatives": str(1 + MAX_ALTERNATIVES),
        }

    async def transcribe(
        self,
        audio_url: str,
        language: Optional[str] = None,
        audio_format: Optional[str] = None,
    ) -> TranscriptionResult:
        if not self.configured:
            raise TranscriptionError("Deepgram client not initialized. Please set DEEPGRAM_API_KEY.")

        language = language or DEFAULT_LANGUAGE
        logger.info(f"Transcription request - language={language}, format={audio_format}")

        async with self._client() as client:
            audio, content_type = await self._fetch_audio(client, audio_url)
            payload = await self._post_with_retry(
                client,
                audio,
                content_type=audio_format or content_type or "application/octet-stream",
                language=language,
            )

        result = parse_deepgram_response(payload, language)
        logger.info(
            f"Transcription done - chars={len(result.text)}, confidence={result.confidence:.2f}, "
            f"alternatives={len(result.alternative_transcriptions)}"
        )
        return result

    async def _fetch_audio(self, client: httpx.AsyncClient, audio_url: str):
        try:
            response = await client.get(audio_url)
        except httpx.HTTPError as e:
            raise TranscriptionError(f"Could not fetch audio: {e}") from e
        if response.status_code != 200:
            raise TranscriptionError(f"Could not fetch audio: HTTP {response.status_code}")
        if not response.content:
            raise TranscriptionError("Could not fetch audio: empty body")
        return response.content, response.headers.get("content-type")

    async def _post_with_retry(
        self,
        client: httpx.AsyncClient,
        audio: bytes,
        *,
        content_type: str,
        language: str,
    ) -> Dict[str, Any]:
        url = f"{self.base_url}/listen"
        headers = {"Authorization": f"Token {self.api_key}", "Content-Type": content_type}
        last_error = None

        for attempt in range(1, self.max_attempts + 1):
            try:
                response = await client.post(
                    url, params=self._params(language), headers=headers, content=audio
                )
            except httpx.TransportError as e:
                last_error = f"{type(e).__name__}: {e}"
            else:
                if response.status_code == 200:
                    try:
                        return response.json()
                    except ValueError as e:
                        raise TranscriptionError(f"Transcription failed: invalid JSON ({e})") from e
                if response.status_code not in RETRYABLE_STATUS_CODES:
                    raise TranscriptionError(
                        f"Transcription failed: HTTP {response.status_code} - {response.text[:200]}"
                    )
                last_error = f"HTTP {response.status_code}"

            if attempt < self.max_attempts:
                logger.warning(f"Deepgram returned {last_error}, retrying in {self.retry_delay}s...")
                await asyncio.sleep(self.retry_delay * attempt)

        raise TranscriptionError(
            f"Transcription failed after {self.max_attempts} attempts: {last_error}"
        )
