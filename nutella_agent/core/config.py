"""
Application configuration (env, settings, constants).

Responsibility: Centralize config loading, environment variables, and app-wide
constants. Keeps the rest of the app decoupled from how config is sourced.
Components receive these values through constructor arguments; only the
wiring layer (API, graph factory, scripts) imports from here.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# Nutella admin API
NUTELLA_API_HOST: str = (
    os.getenv("NUTELLA_API_HOST", "https://api.highspot.com/v1.0").strip()
    or "https://api.highspot.com/v1.0"
)

# On-disk response cache (one file per host/resource/hour)
NUTELLA_CACHE_DIR: Path = Path(
    os.getenv("NUTELLA_CACHE_DIR", "").strip() or Path.cwd() / ".cache" / "nutella"
)
CACHE_TTL_SECONDS: float = 3600.0

# AI proxy (chat completions)
AI_PROXY_URL: str = (
    os.getenv("AI_PROXY_URL", "").strip()
    or "https://ai-services.k8s.latest0-su0.hspt.io/azure-proxy/openai/deployments/"
    "gpt-4o-mini-128k-2024-07-18/chat/completions?api-version=2024-02-15-preview"
)
AI_PROXY_TOKEN: str = os.getenv("AI_PROXY_TOKEN", "").strip() or "local-test"
OPENAI_MODEL: str | None = os.getenv("OPENAI_MODEL", "").strip() or None
AI_TEMPERATURE: float = float(os.getenv("AI_TEMPERATURE", "0.2") or 0.2)
AI_COMPLETIONS: int = 1

# API timeouts (seconds)
NUTELLA_HTTP_TIMEOUT: float = float(os.getenv("NUTELLA_HTTP_TIMEOUT", "30") or 30.0)
AI_HTTP_TIMEOUT: float = float(os.getenv("AI_HTTP_TIMEOUT", "60") or 60.0)
