"""Configuration data models for the analysis layer.

Each dataclass mirrors one section of the INI file. Section attribute names on ``Config`` are the
upper-case INI section names, and field names are the upper-case INI keys.
"""

from __future__ import annotations

from dataclasses import dataclass, field

__all__: list[str] = [
    "Cache",
    "Config",
    "Coordinator",
    "Detection",
    "General",
    "Offline",
    "Orchestrator",
    "Providers",
    "RateLimit",
]


@dataclass
class General:
    DEBUG: bool = False
    LOG_FILE: str = ""
    SCRIPT_NAME: str = ""


@dataclass
class Orchestrator:
    CONFIDENCE_THRESHOLD: float = 0.6
    MIN_TEXT_LENGTH: int = 2
    DEFAULT_TIMEOUT_MS: int = 5000
    TRANSLATION_CACHE_THRESHOLD: float = 0.8
    EMOTION_CACHE_THRESHOLD: float = 0.5
    DEFAULT_LANGUAGE: str = "fr"
    CULTURAL_CONTEXT: str = "western"


@dataclass
class Providers:
    TRANSLATION: list[str] = field(default_factory=lambda: ["google_cloud", "azure_translator", "libre_translate"])
    EMOTION: list[str] = field(default_factory=lambda: ["azure_text", "google_nl", "openai"])
    DISABLED: list[str] = field(default_factory=list)
    COST_HINTS: dict[str, float] = field(default_factory=dict)
    LIBRE_TRANSLATE_URL: str = "https://libretranslate.com/translate"
    AZURE_TRANSLATOR_REGION: str = "westeurope"
    AZURE_TEXT_ENDPOINT: str = ""
    OPENAI_MODEL: str = "gpt-3.5-turbo"


@dataclass
class RateLimit:
    LIMITS: dict[str, int] = field(
        default_factory=lambda: {
            "google_cloud": 100,
            "azure_translator": 500,
            "azure_text": 1000,
            "google_nl": 600,
            "openai": 3000,
        }
    )
    WINDOW_MS: int = 60000
    ADAPTIVE_COOLDOWN: bool = True
    BASE_COOLDOWN_SEC: float = 1.0
    MAX_COOLDOWN_SEC: float = 30.0
    COOLDOWN_RESET_SEC: float = 60.0


@dataclass
class Cache:
    TTL_MS: int = 24 * 60 * 60 * 1000
    MAX_ENTRIES: int = 1000
    EVICTION_RATIO: float = 0.3
    STALE_RETENTION_MS: int = 7 * 24 * 60 * 60 * 1000
    DB_PATH: str = ""


@dataclass
class Coordinator:
    DEBOUNCE_MS: int = 800
    SERIAL_SPACING_MS: int = 100


@dataclass
class Offline:
    HEURISTIC_CONFIDENCE: float = 0.35
    PENDING_CONFIDENCE: float = 0.1
    PENDING_MARKER: str = "[translation pending]"


@dataclass
class Detection:
    RELIABLE_CONFIDENCE: float = 0.8
    LOCAL_RELIABLE_CONFIDENCE: float = 0.6
    FALLBACK_LANGUAGE: str = "en"
    FALLBACK_CONFIDENCE: float = 0.3


@dataclass
class Config:
    GENERAL: General = field(default_factory=General)
    ORCHESTRATOR: Orchestrator = field(default_factory=Orchestrator)
    PROVIDERS: Providers = field(default_factory=Providers)
    RATE_LIMIT: RateLimit = field(default_factory=RateLimit)
    CACHE: Cache = field(default_factory=Cache)
    COORDINATOR: Coordinator = field(default_factory=Coordinator)
    OFFLINE: Offline = field(default_factory=Offline)
    DETECTION: Detection = field(default_factory=Detection)
