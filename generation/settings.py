"""
Pipeline configuration.

Every knob is read from the environment (see .env) with a sane default.
Tests build GenerationSettings directly with zero delays.
"""

import os
from typing import List, Optional

from pydantic import BaseModel, Field


def _env_list(name: str, default: str) -> List[str]:
    val = os.getenv(name, default)
    return [x.strip().lower() for x in val.split(";") if x.strip()]


def _env_bool(name: str, default: bool = False) -> bool:
    val = os.getenv(name)
    if val is None:
        return default
    return val.strip().lower() in {"1", "true", "yes", "on"}


class GenerationSettings(BaseModel):
    # ── Providers ──────────────────────────────────────────────────────────────
    providers: List[str] = Field(default_factory=lambda: ["openai", "huggingface", "remote"])
    openai_api_key: Optional[str] = None
    gpt_model: str = "gpt-4o-mini"
    temperature: float = 0.7
    max_tokens: int = 900
    hf_api_key: Optional[str] = None
    hf_model: str = "google/flan-t5-xl"
    functions_base_url: Optional[str] = None
    functions_api_key: Optional[str] = None
    functions_generate_name: str = "ai-generate-text"

    # ── Timing ────────────────────────────────────────────────────────────────
    provider_timeout_seconds: float = Field(20.0, gt=0)
    slot_deadline_seconds: float = Field(90.0, gt=0)
    stagger_seconds: float = Field(0.15, ge=0)
    retry_backoff_seconds: float = Field(0.5, ge=0)
    race_providers: bool = False

    # ── Connectivity ──────────────────────────────────────────────────────────
    connectivity_probe_url: str = "https://www.gstatic.com/generate_204"
    force_offline: bool = False

    # ── Attempt limits ────────────────────────────────────────────────────────
    max_passes: int = Field(3, ge=1)
    replacement_offset: int = Field(10, ge=1)
    fallback_probe_limit: int = Field(50, ge=1)
    max_batch_size: int = Field(50, ge=1)

    # ── Similarity ────────────────────────────────────────────────────────────
    duplicate_threshold: float = Field(0.4, ge=0, le=1)
    objective_alignment_threshold: float = Field(0.2, ge=0, le=1)
    fingerprint_prefix_length: int = Field(40, ge=1)

    @classmethod
    def from_env(cls) -> "GenerationSettings":
        return cls(
            providers=_env_list("QGEN_PROVIDERS", "openai;huggingface;remote"),
            openai_api_key=os.getenv("OPENAI_API_KEY") or None,
            gpt_model=os.getenv("GPT_MODEL", "gpt-4o-mini"),
            temperature=float(os.getenv("GPT_TEMPERATURE", "0.7")),
            max_tokens=int(os.getenv("GPT_MAX_TOKENS", "900")),
            hf_api_key=os.getenv("HUGGING_FACE_API_KEY") or None,
            hf_model=os.getenv("HF_MODEL", "google/flan-t5-xl"),
            functions_base_url=os.getenv("FUNCTIONS_BASE_URL") or None,
            functions_api_key=os.getenv("FUNCTIONS_API_KEY") or None,
            functions_generate_name=os.getenv("FUNCTIONS_GENERATE_NAME", "ai-generate-text"),
            provider_timeout_seconds=float(os.getenv("PROVIDER_TIMEOUT_SECONDS", "20")),
            slot_deadline_seconds=float(os.getenv("SLOT_DEADLINE_SECONDS", "90")),
            stagger_seconds=float(os.getenv("STAGGER_SECONDS", "0.15")),
            retry_backoff_seconds=float(os.getenv("RETRY_BACKOFF_SECONDS", "0.5")),
            race_providers=_env_bool("RACE_PROVIDERS"),
            connectivity_probe_url=os.getenv("CONNECTIVITY_PROBE_URL", "https://www.gstatic.com/generate_204"),
            force_offline=_env_bool("FORCE_OFFLINE"),
            max_passes=int(os.getenv("MAX_PASSES", "3")),
            replacement_offset=int(os.getenv("REPLACEMENT_OFFSET", "10")),
            fallback_probe_limit=int(os.getenv("FALLBACK_PROBE_LIMIT", "50")),
            max_batch_size=int(os.getenv("MAX_BATCH_SIZE", "50")),
            duplicate_threshold=float(os.getenv("DUPLICATE_THRESHOLD", "0.4")),
            objective_alignment_threshold=float(os.getenv("OBJECTIVE_ALIGNMENT_THRESHOLD", "0.2")),
            fingerprint_prefix_length=int(os.getenv("FINGERPRINT_PREFIX_LENGTH", "40")),
        )


# Lazy singleton
_settings: Optional[GenerationSettings] = None


def get_settings() -> GenerationSettings:
    global _settings
    if _settings is None:
        _settings = GenerationSettings.from_env()
    return _settings
