import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

# --- Configuration ---
PACKAGE_DIR = Path(__file__).parent
DEFAULT_STATIC_DIR = PACKAGE_DIR / "public"
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 6060
DEFAULT_LOG_LEVEL = "INFO"

API_BASE = "https://generativelanguage.googleapis.com/v1beta"
MODEL = "gemini-2.5-flash"

# Generation parameters sent with every request
TEMPERATURE = 0.9  # Higher temperature keeps long answers from getting terse
TOP_P = 0.95
TOP_K = 64
MAX_OUTPUT_TOKENS = 2048

SAFETY_THRESHOLD = "BLOCK_MEDIUM_AND_ABOVE"
HARM_CATEGORIES = (
    "HARM_CATEGORY_HARASSMENT",
    "HARM_CATEGORY_HATE_SPEECH",
    "HARM_CATEGORY_SEXUALLY_EXPLICIT",
    "HARM_CATEGORY_DANGEROUS_CONTENT",
)


@dataclass(frozen=True)
class Settings:
    """
    Process-wide settings, read once at startup and passed to the app.

    The API key may be missing here; the relay reports that on each request
    instead of refusing to start.
    """

    api_key: Optional[str] = None
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    model: str = MODEL
    api_base: str = API_BASE
    temperature: float = TEMPERATURE
    top_p: float = TOP_P
    top_k: int = TOP_K
    max_output_tokens: int = MAX_OUTPUT_TOKENS
    safety_threshold: str = SAFETY_THRESHOLD
    static_dir: Path = DEFAULT_STATIC_DIR
    log_level: str = DEFAULT_LOG_LEVEL

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """
        Builds settings from environment variables.

        Args:
            environ: Mapping to read from. Defaults to os.environ.
        Returns:
            A Settings instance. Empty values count as unset.
        """
        env = os.environ if environ is None else environ
        return cls(
            api_key=env.get("GEMINI_API_KEY") or None,
            host=env.get("HOST") or DEFAULT_HOST,
            port=int(env.get("PORT") or DEFAULT_PORT),
            model=env.get("GEMINI_MODEL") or MODEL,
            static_dir=Path(env.get("KINDRED_STATIC_DIR") or DEFAULT_STATIC_DIR),
            log_level=(env.get("LOG_LEVEL") or DEFAULT_LOG_LEVEL).upper(),
        )

    def override(self, **values: Any) -> "Settings":
        """Returns a copy with every non-None keyword applied."""
        changes = {k: v for k, v in values.items() if v is not None}
        if "static_dir" in changes:
            changes["static_dir"] = Path(changes["static_dir"])
        return replace(self, **changes)

    def generation_config(self) -> Dict[str, Any]:
        return {
            "temperature": self.temperature,
            "topP": self.top_p,
            "topK": self.top_k,
            "maxOutputTokens": self.max_output_tokens,
        }

    def safety_settings(self) -> List[Dict[str, str]]:
        return [
            {"category": category, "threshold": self.safety_threshold}
            for category in HARM_CATEGORIES
        ]
