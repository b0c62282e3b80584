from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

import requests

log = logging.getLogger(__name__)

GEMINI_API_KEY = os.getenv("GEMINI_API_KEY", "").strip()
GEMINI_GENERATION_MODEL = os.getenv("GEMINI_GENERATION_MODEL", "gemini-1.5-pro").strip()
GEMINI_EDIT_MODEL = os.getenv("GEMINI_EDIT_MODEL", "gemini-2.0-flash").strip()
GEMINI_API_BASE = os.getenv(
    "GEMINI_API_BASE", "https://generativelanguage.googleapis.com/v1beta/models"
).rstrip("/")

try:
    LLM_TIMEOUT_SECS = float(os.getenv("LLM_TIMEOUT_SECS", "75"))
except ValueError:
    LLM_TIMEOUT_SECS = 75.0
try:
    EDIT_TIMEOUT_SECS = float(os.getenv("EDIT_TIMEOUT_SECS", "60"))
except ValueError:
    EDIT_TIMEOUT_SECS = 60.0
try:
    LLM_MAX_TOKENS = int(os.getenv("LLM_MAX_TOKENS", "8192"))
except ValueError:
    LLM_MAX_TOKENS = 8192

GENERATION_CONFIG: Dict[str, Any] = {
    "temperature": 0.7,
    "topP": 0.95,
    "topK": 40,
    "maxOutputTokens": LLM_MAX_TOKENS,
}

EDIT_GENERATION_CONFIG: Dict[str, Any] = {
    "temperature": 0.3,
    "topP": 0.95,
    "topK": 40,
    "maxOutputTokens": LLM_MAX_TOKENS,
    # Keeps the model from wrapping the document in a markdown fence
    "stopSequences": ["```"],
}

SAFETY_SETTINGS: List[Dict[str, str]] = [
    {"category": "HARM_CATEGORY_HATE_SPEECH", "threshold": "BLOCK_ONLY_HIGH"},
    {"category": "HARM_CATEGORY_DANGEROUS_CONTENT", "threshold": "BLOCK_ONLY_HIGH"},
]


@dataclass(frozen=True)
class Generated:
    text: str


@dataclass(frozen=True)
class Empty:
    reason: str = "empty response"


@dataclass(frozen=True)
class Timeout:
    seconds: float


@dataclass(frozen=True)
class TransportError:
    message: str


Outcome = Union[Generated, Empty, Timeout, TransportError]


def has_token() -> bool:
    return bool(GEMINI_API_KEY)


def status() -> Dict[str, Any]:
    return {
        "provider": "gemini",
        "model": GEMINI_GENERATION_MODEL,
        "edit_model": GEMINI_EDIT_MODEL,
        "has_token": has_token(),
        "using": "gemini" if has_token() else "fallback",
    }


def _endpoint(model: str) -> str:
    return f"{GEMINI_API_BASE}/{model}:generateContent"


def _extract_gemini_text(payload: Dict[str, Any]) -> Optional[str]:
    candidates = payload.get("candidates") or []
    if not isinstance(candidates, list):
        return None
    for cand in candidates:
        if not isinstance(cand, dict):
            continue
        content = cand.get("content")
        if not isinstance(content, dict):
            continue
        parts = content.get("parts")
        if not isinstance(parts, list):
            continue
        texts: List[str] = []
        for part in parts:
            txt = part.get("text") if isinstance(part, dict) else None
            if isinstance(txt, str):
                texts.append(txt)
        joined = "".join(texts)
        if joined.strip():
            return joined
    return None


def _call_gemini(
    text: str,
    model: str,
    generation_config: Dict[str, Any],
    timeout: float,
    safety_settings: Optional[List[Dict[str, str]]] = None,
) -> Outcome:
    """One generateContent round trip, folded into an explicit outcome value."""
    if not GEMINI_API_KEY:
        return TransportError("GEMINI_API_KEY is not configured")

    body: Dict[str, Any] = {
        "contents": [{"role": "user", "parts": [{"text": text}]}],
        "generationConfig": generation_config,
    }
    if safety_settings:
        body["safetySettings"] = safety_settings

    try:
        resp = requests.post(
            _endpoint(model),
            params={"key": GEMINI_API_KEY},
            json=body,
            timeout=timeout,
        )
    except requests.Timeout:
        log.warning("Gemini request to model=%s timed out after %.0fs", model, timeout)
        return Timeout(timeout)
    except requests.RequestException as e:
        log.warning("Gemini request error model=%s: %r", model, e)
        return TransportError(f"request failed: {e}")

    if resp.status_code != 200:
        msg = (resp.text or "")[:400]
        log.warning("Gemini HTTP %s model=%s: %s", resp.status_code, model, msg)
        return TransportError(f"HTTP {resp.status_code}: {msg}")

    try:
        data = resp.json()
    except ValueError:
        log.warning("Gemini model=%s returned a non-JSON body", model)
        return TransportError("non-JSON response body")
    if not isinstance(data, dict):
        return TransportError("unexpected response shape")

    out = _extract_gemini_text(data)
    if not out:
        feedback = data.get("promptFeedback") or {}
        reason = feedback.get("blockReason") if isinstance(feedback, dict) else None
        log.warning("Gemini model=%s returned no text (block_reason=%s)", model, reason)
        return Empty(f"blocked: {reason}" if reason else "empty response")
    return Generated(out)


def generate_site_html(text: str) -> Outcome:
    return _call_gemini(
        text,
        GEMINI_GENERATION_MODEL,
        GENERATION_CONFIG,
        LLM_TIMEOUT_SECS,
        safety_settings=SAFETY_SETTINGS,
    )


def edit_site_html(text: str) -> Outcome:
    return _call_gemini(text, GEMINI_EDIT_MODEL, EDIT_GENERATION_CONFIG, EDIT_TIMEOUT_SECS)
