"""
Audio analysis collaborators for BeatSlicer.
Proposes slice timestamps for a track: Gemini (remote) or librosa onsets (offline).
"""
from __future__ import annotations
import base64
from http.client import HTTPException
import io
import json
import logging
import mimetypes
from typing import Any, Optional
from urllib.request import Request, urlopen

import numpy as np

from .config import ANALYSIS_CONFIG, SLICE_CONFIG
from .types import AnalysisClient, AnalysisError, AnalysisRequest, AnalysisResult, PhaseCallback

logger = logging.getLogger("BeatSlicer")

# Failures an analysis client recovers from with a degraded result
RECOVERABLE_ERRORS = (
    OSError, HTTPException, ValueError, KeyError, IndexError, TypeError, RuntimeError
)

SLICE_PROMPT = """Analyze this audio sample for a sampler application. I need you to "chop" this sample into playable slices to map onto a 4x4 pad controller (16 pads).

Target: Identify up to 16 slice start points (timestamps in seconds).

Instructions:
1.  Find the 16 most musically significant transient attacks (kicks, snares, sample starts) or phrase changes.
2.  Always include 0.0 as the absolute first slice.
3.  If the audio is short or simple, return fewer slices, but maximize the usage of the 16 pads if the content allows (e.g., slice every beat or 1/8th note).
4.  Ensure slices are distinct (avoid slices that are extremely close together, e.g., < 0.05s).

Return a JSON object with:
1. 'slices': an array of numbers representing the start time in seconds for each slice.
2. 'bpm': an estimated tempo (number) if detectable.
3. 'genre': a short string describing the style.

Strictly follow the JSON schema."""

RESPONSE_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "slices": {
            "type": "ARRAY",
            "items": {"type": "NUMBER"},
            "description": "Start times in seconds for each slice",
        },
        "bpm": {"type": "NUMBER", "description": "Estimated BPM of the audio"},
        "genre": {"type": "STRING", "description": "Estimated genre of the audio"},
    },
    "required": ["slices"],
}


def guess_mime_type(path: str) -> str:
    mime, _ = mimetypes.guess_type(path)
    return mime or "application/octet-stream"


def encode_audio_file(path: str) -> tuple[str, str]:
    """
    Read an audio file and encode it for transport.

    Returns:
        Tuple of (base64_data, mime_type)
    """
    with open(path, "rb") as fh:
        raw = fh.read()
    return base64.b64encode(raw).decode("ascii"), guess_mime_type(path)


def parse_slice_response(payload: Any) -> AnalysisResult:
    """Validate a decoded `{slices, bpm?, genre?}` payload."""
    if not isinstance(payload, dict):
        raise AnalysisError("Analysis payload is not an object")
    slices = payload.get("slices")
    if not isinstance(slices, list):
        raise AnalysisError("Analysis payload has no 'slices' array")

    bpm = payload.get("bpm")
    genre = payload.get("genre")
    return AnalysisResult(
        slices=[float(s) for s in slices],
        bpm=float(bpm) if isinstance(bpm, (int, float)) else None,
        genre=str(genre) if genre else None,
    )


class GeminiAnalysisClient:
    """Calls the Gemini generateContent REST endpoint with inline audio."""

    def __init__(
        self,
        api_key: str,
        model: str = ANALYSIS_CONFIG.model,
        timeout: float = ANALYSIS_CONFIG.timeout_seconds,
        endpoint: str = ANALYSIS_CONFIG.endpoint
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._timeout = timeout
        self._endpoint = endpoint.rstrip("/")

    @property
    def url(self) -> str:
        return f"{self._endpoint}/{self._model}:generateContent"

    def build_request_body(self, audio_base64: str, mime_type: str) -> dict[str, Any]:
        return {
            "contents": [{
                "parts": [
                    {"inline_data": {"mime_type": mime_type, "data": audio_base64}},
                    {"text": SLICE_PROMPT},
                ],
            }],
            "generationConfig": {
                "responseMimeType": "application/json",
                "responseSchema": RESPONSE_SCHEMA,
            },
        }

    def analyze(self, audio_base64: str, mime_type: str) -> AnalysisResult:
        body = json.dumps(self.build_request_body(audio_base64, mime_type)).encode("utf-8")
        req = Request(
            self.url,
            data=body,
            method="POST",
            headers={
                "Content-Type": "application/json",
                "x-goog-api-key": self._api_key,
                "User-Agent": "BeatSlicer/1.0",
            },
        )
        try:
            with urlopen(req, timeout=self._timeout) as response:
                data = json.loads(response.read().decode("utf-8"))
            text = "".join(
                part.get("text", "") for part in data["candidates"][0]["content"]["parts"]
            )
            if not text:
                raise AnalysisError("No response text received from Gemini")
            result = parse_slice_response(json.loads(text))
        except RECOVERABLE_ERRORS as e:
            logger.warning("Gemini analysis failed: %s", e)
            return AnalysisResult.fallback()

        logger.info("Gemini proposed %d slice(s), bpm=%s", len(result.slices), result.bpm)
        return result


class OnsetAnalysisClient:
    """
    Offline analysis using librosa onset detection.
    Keeps the strongest onsets (one per pad) and estimates tempo.
    """

    def __init__(
        self,
        max_slices: int = SLICE_CONFIG.max_slices,
        hop_length: int = ANALYSIS_CONFIG.onset_hop_length
    ) -> None:
        self._max_slices = max_slices
        self._hop_length = hop_length

    def analyze(self, audio_base64: str, mime_type: str) -> AnalysisResult:
        import librosa
        from librosa.util.exceptions import ParameterError

        try:
            raw = base64.b64decode(audio_base64)
            y, sr = librosa.load(io.BytesIO(raw), sr=None, mono=True)
            if y.size == 0:
                raise AnalysisError("Decoded audio is empty")

            envelope = librosa.onset.onset_strength(y=y, sr=sr, hop_length=self._hop_length)
            frames = librosa.onset.onset_detect(
                onset_envelope=envelope, sr=sr, hop_length=self._hop_length
            )
            # Slot 0 is reserved for the 0.0 anchor
            keep = self._max_slices - 1
            if len(frames) > keep:
                strongest = np.argsort(envelope[frames])[::-1][:keep]
                frames = np.sort(frames[strongest])
            times = librosa.frames_to_time(frames, sr=sr, hop_length=self._hop_length)

            tempo, _ = librosa.beat.beat_track(
                onset_envelope=envelope, sr=sr, hop_length=self._hop_length
            )
            bpm = float(np.atleast_1d(tempo)[0])
        except (*RECOVERABLE_ERRORS, ParameterError) as e:
            logger.warning("Onset analysis failed: %s", e)
            return AnalysisResult.fallback()

        slices = [0.0] + [float(t) for t in times]
        logger.info("Onset analysis found %d slice(s), bpm=%.1f", len(slices), bpm)
        return AnalysisResult(slices=slices, bpm=round(bpm, 1) if bpm > 0 else None)


def create_analysis_client(api_key: Optional[str] = None) -> AnalysisClient:
    """Gemini when an API key is configured, offline onsets otherwise."""
    key = ANALYSIS_CONFIG.api_key if api_key is None else api_key
    if key:
        return GeminiAnalysisClient(api_key=key)
    logger.info("No Gemini API key configured, using offline onset analysis")
    return OnsetAnalysisClient()


def analyze_track(
    request: AnalysisRequest,
    client: AnalysisClient,
    on_phase: Optional[PhaseCallback] = None
) -> AnalysisResult:
    """
    Encode the requested track and run it through `client`.
    Blocking; run off the GUI thread.
    """
    if on_phase:
        on_phase("Extracting audio signature...")
    try:
        audio_base64, mime_type = encode_audio_file(request.source)
    except OSError as e:
        logger.error("Could not read %s: %s", request.source, e)
        return AnalysisResult.fallback()

    if on_phase:
        on_phase("Analysis in progress...")
    return client.analyze(audio_base64, request.mime_type or mime_type)
