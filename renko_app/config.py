# renko_app/config.py
import os

from dotenv import load_dotenv

load_dotenv()

# =========================
#  Refresh / Renko behavior
# =========================

# Période du rafraîchissement automatique du graphique (ms).
REFRESH_INTERVAL_MS: int = int(os.getenv("REFRESH_INTERVAL_MS", "60000"))

# Fenêtre d'historique demandée à la source (jours).
LOOKBACK_DAYS: int = int(os.getenv("LOOKBACK_DAYS", "7"))

# "ATR(14)" : moyenne des true ranges sur toute la série, la période n'est pas appliquée.
ATR_PERIOD: int = int(os.getenv("ATR_PERIOD", "14"))

# Plancher de la taille de brique, en fraction du dernier close (0.5 %).
BRICK_FLOOR_PCT: float = float(os.getenv("BRICK_FLOOR_PCT", "0.005"))

# =========================
#  Market data (CoinGecko)
# =========================

COINGECKO_BASE_URL: str = os.getenv("COINGECKO_BASE_URL", "https://api.coingecko.com/api/v3")
VS_CURRENCY: str = os.getenv("VS_CURRENCY", "usd")
HTTP_TIMEOUT_SEC: float = float(os.getenv("HTTP_TIMEOUT_SEC", "30"))

# Fetchs OHLC simultanés : une requête lente sur l'ancien actif ne bloque pas le nouveau.
FETCH_WORKERS: int = int(os.getenv("FETCH_WORKERS", "4"))

# =========================
#  Classification (Groq)
# =========================

GROQ_API_KEY: str = (os.getenv("GROQ_API_KEY") or "").strip()
GROQ_CHAT_URL: str = os.getenv("GROQ_CHAT_URL", "https://api.groq.com/openai/v1/chat/completions")
GROQ_MODEL: str = os.getenv("GROQ_MODEL", "llama-3.3-70b-versatile")

# Valeur d'assetId renvoyée quand aucun identifiant de marché n'est connu.
NO_MARKET_KEY: str = os.getenv("NO_MARKET_KEY", "id-not-found")

# =========================
#  Logs
# =========================

LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
