# renko_app/chat/sentiment_service_groq.py
from __future__ import annotations
import json, logging, time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import requests
from pydantic import ValidationError

from renko_app.config import GROQ_API_KEY, GROQ_CHAT_URL, GROQ_MODEL, NO_MARKET_KEY
from renko_app.data.models import SentimentResult
from renko_app.errors import ClassificationError, NoMarketKey

__all__ = ["GroqSentimentService", "build_messages", "parse_sentiment", "require_market_key"]

log = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You classify market sentiment for a financial asset based on recent news and discussion. "
    "Reply with a single JSON object with the keys: "
    "\"sentiment\" (one of \"Positive\", \"Neutral\", \"Negative\"), "
    "\"summary\" (2-3 sentences explaining the sentiment), "
    "\"icon\" (a single emoji for the sentiment), "
    "\"assetId\" (the CoinGecko API id of the asset, lowercase without spaces, e.g. 'bitcoin', 'ethereum'). "
    "If you are not sure, or the asset is not a known cryptocurrency, set \"assetId\" to \"{sentinel}\"."
)

@dataclass
class ChatRequest:
    model: str
    messages: List[Dict[str, Any]]
    temperature: float = 0.2
    max_tokens: int = 400
    timeout_sec: float = 45.0
    response_format: Dict[str, str] = field(default_factory=lambda: {"type": "json_object"})


def build_messages(asset_name: str, sentinel: str = NO_MARKET_KEY) -> List[Dict[str, Any]]:
    return [
        {"role": "system", "content": SYSTEM_PROMPT.format(sentinel=sentinel)},
        {"role": "user", "content": f"Asset: {asset_name.strip()}"},
    ]


def parse_sentiment(content: str) -> SentimentResult:
    """Texte JSON du modèle -> SentimentResult (ClassificationError si invalide)."""
    try:
        return SentimentResult.model_validate_json(content.strip())
    except ValidationError as e:
        raise ClassificationError(f"Invalid classification payload: {e.error_count()} error(s)",
                                  details={"content": content[:300]}) from e


def require_market_key(result: SentimentResult, requested_name: str, sentinel: str = NO_MARKET_KEY) -> str:
    """Renvoie l'assetId exploitable, ou NoMarketKey si c'est la sentinelle."""
    asset_id = (result.asset_id or "").strip()
    if not asset_id or asset_id == sentinel:
        raise NoMarketKey(requested_name)
    return asset_id


class GroqSentimentService:
    """Appel bloquant : à lancer hors du thread UI (executor)."""

    def __init__(self, model: str = GROQ_MODEL, api_key: str = GROQ_API_KEY,
                 session: Optional[requests.Session] = None, url: str = GROQ_CHAT_URL):
        self.model = model
        self.api_key = api_key
        self.url = url
        self.session = session or requests.Session()

    def classify(self, asset_name: str) -> SentimentResult:
        if not self.api_key:
            raise ClassificationError("GROQ_API_KEY is missing from the environment (.env)")

        req = ChatRequest(model=self.model, messages=build_messages(asset_name))
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        payload = {
            "model": req.model,
            "messages": req.messages,
            "temperature": req.temperature,
            "max_tokens": req.max_tokens,
            "response_format": req.response_format,
            "stream": False,
        }
        t0 = time.time()
        try:
            resp = self.session.post(self.url, headers=headers, data=json.dumps(payload), timeout=req.timeout_sec)
        except requests.Timeout as e:
            raise ClassificationError("Client-side HTTP timeout") from e
        except requests.RequestException as e:
            raise ClassificationError(str(e)) from e
        log.debug("classify(%r) HTTP status=%s in %.2fs", asset_name, resp.status_code, time.time() - t0)

        if resp.status_code != 200:
            raise ClassificationError(f"HTTP {resp.status_code} – {resp.text[:300]}",
                                      details={"status_code": resp.status_code})
        try:
            content = resp.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise ClassificationError("Unexpected chat completion body") from e

        result = parse_sentiment(content)
        log.info("classify(%r) -> %s / %s", asset_name, result.sentiment, result.asset_id)
        return result
