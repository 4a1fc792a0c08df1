import asyncio

import httpx
import pytest

from core.errors import TranscriptionError
from services.transcription import DeepgramTranscriber, parse_deepgram_response

AUDIO_URL = "https://files.example.com/voice/note.webm"

DEEPGRAM_PAYLOAD = {
    "results": {
        "channels": [
            {
                "detected_language": "en",
                "alternatives": [
                    {"transcript": " I spent fifty rupees on chai. ", "confidence": 0.93},
                    {"transcript": "I spent fifteen rupees on chai.", "confidence": 0.61},
                    {"transcript": "I sent fifty rupees on chai.", "confidence": 0.42},
                    {"transcript": "Eye spent fifty rupees on tea.", "confidence": 0.2},
                ],
            }
        ]
    }
}


class FakeDeepgram:
    """Serves the audio file and answers /listen with scripted statuses."""

    def __init__(self, statuses=(200,), payload=None, audio_status=200):
        self.statuses = list(statuses)
        self.payload = payload if payload is not None else DEEPGRAM_PAYLOAD
        self.audio_status = audio_status
        self.posts = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if request.method == "GET":
            if self.audio_status != 200:
                return httpx.Response(self.audio_status)
            return httpx.Response(200, content=b"\x1aE\xdf\xa3webm", headers={"content-type": "audio/webm"})

        self.posts.append(request)
        status = self.statuses.pop(0) if len(self.statuses) > 1 else self.statuses[0]
        if status != 200:
            return httpx.Response(status, text="upstream unhappy")
        return httpx.Response(200, json=self.payload)


def _transcriber(fake, **kwargs):
    kwargs.setdefault("api_key", "test-key")
    return DeepgramTranscriber(
        base_url="https://api.deepgram.test/v1",
        model="nova-2",
        retry_delay=0,
        transport=httpx.MockTransport(fake),
        **kwargs,
    )


def test_transcribe_maps_primary_and_alternatives():
    fake = FakeDeepgram()

    result = asyncio.run(_transcriber(fake).transcribe(AUDIO_URL, language="en-IN", audio_format="audio/webm"))

    assert result.text == "I spent fifty rupees on chai."
    assert result.confidence == 0.93
    assert result.language_detected == "en"
    assert result.alternative_transcriptions == [
        "I spent fifteen rupees on chai.",
        "I sent fifty rupees on chai.",
    ]

    [post] = fake.posts
    assert post.url.path == "/v1/listen"
    assert post.headers["Authorization"] == "Token test-key"
    assert post.headers["Content-Type"] == "audio/webm"
    assert post.url.params["model"] == "nova-2"
    assert post.url.params["language"] == "en-IN"
    assert post.url.params["smart_format"] == "true"
    assert post.url.params["punctuate"] == "true"
    assert post.url.params["diarize"] == "false"
    assert post.content == b"\x1aE\xdf\xa3webm"


def test_server_error_is_retried():
    fake = FakeDeepgram(statuses=(503, 200))

    result = asyncio.run(_transcriber(fake, max_attempts=2).transcribe(AUDIO_URL))

    assert result.text == "I spent fifty rupees on chai."
    assert len(fake.posts) == 2


def test_retries_are_bounded():
    fake = FakeDeepgram(statuses=(429,))

    with pytest.raises(TranscriptionError, match="after 2 attempts"):
        asyncio.run(_transcriber(fake, max_attempts=2).transcribe(AUDIO_URL))

    assert len(fake.posts) == 2


def test_client_error_is_not_retried():
    fake = FakeDeepgram(statuses=(400,))

    with pytest.raises(TranscriptionError, match="HTTP 400"):
        asyncio.run(_transcriber(fake, max_attempts=3).transcribe(AUDIO_URL))

    assert len(fake.posts) == 1


def test_unreachable_audio_fails():
    fake = FakeDeepgram(audio_status=404)

    with pytest.raises(TranscriptionError, match="Could not fetch audio"):
        asyncio.run(_transcriber(fake).transcribe(AUDIO_URL))

    assert fake.posts == []


def test_missing_key_fails_without_network():
    fake = FakeDeepgram()

    with pytest.raises(TranscriptionError, match="DEEPGRAM_API_KEY"):
        asyncio.run(_transcriber(fake, api_key="").transcribe(AUDIO_URL))

    assert fake.posts == []


def test_response_without_channels_is_an_error():
    with pytest.raises(TranscriptionError, match="No transcription result"):
        parse_deepgram_response({"results": {"channels": []}}, "en-IN")

    with pytest.raises(TranscriptionError, match="No transcription result"):
        parse_deepgram_response({"results": {"channels": [{"alternatives": []}]}}, "en-IN")


def test_defaults_for_missing_confidence_and_language():
    payload = {"results": {"channels": [{"alternatives": [{"transcript": "paid two hundred"}]}]}}

    result = parse_deepgram_response(payload, "hi-IN")

    assert result.confidence == 0.8
    assert result.language_detected == "hi-IN"
    assert result.alternative_transcriptions == []
