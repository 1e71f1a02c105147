"""Per-language text bundles and the fallback-to-English resolution rule."""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Mapping, Optional

from services.errors import ValidationError


class LanguageCode(str, Enum):
    EN = "en"
    HI = "hi"
    RU = "ru"
    KO = "ko"
    ZH = "zh"
    JA = "ja"
    ES = "es"


DEFAULT_LANGUAGE = LanguageCode.EN.value
SUPPORTED_LANGUAGES = [code.value for code in LanguageCode]

LANGUAGE_LABELS = {
    "en": "English",
    "hi": "हिन्दी (Hindi)",
    "ru": "Русский (Russian)",
    "ko": "한국어 (Korean)",
    "zh": "中文 (Chinese)",
    "ja": "日本語 (Japanese)",
    "es": "Español (Spanish)",
}

LocalizedText = Dict[str, str]


def resolve_language(language: Any) -> str:
    """Map an arbitrary language input onto a supported code, defaulting to English."""
    code = str(getattr(language, "value", language) or "").strip().lower()
    return code if code in SUPPORTED_LANGUAGES else DEFAULT_LANGUAGE


def resolve(value: Optional[Mapping[str, Any]], language: Any) -> str:
    """Resolve a localized bundle to one string.

    Returns the requested language when it is non-empty, otherwise English,
    otherwise an empty string. Never raises.
    """
    if not isinstance(value, Mapping):
        return ""
    code = resolve_language(language)
    requested = value.get(code)
    if isinstance(requested, str) and requested:
        return requested
    fallback = value.get(DEFAULT_LANGUAGE)
    if isinstance(fallback, str) and fallback:
        return fallback
    return ""


def normalize_localized(value: Any, field: str) -> LocalizedText:
    """Validate a localized payload and return a clean ``{code: text}`` mapping.

    Unknown language codes are rejected. Values are stripped and empty
    entries dropped so that storage only carries real translations.
    """
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ValidationError(f"{field} must be an object keyed by language code", field=field)

    cleaned: LocalizedText = {}
    for raw_code, text in value.items():
        code = str(getattr(raw_code, "value", raw_code)).strip().lower()
        if code not in SUPPORTED_LANGUAGES:
            raise ValidationError(
                f"Unsupported language '{code}' in {field}. Supported: {', '.join(SUPPORTED_LANGUAGES)}",
                field=f"{field}.{code}",
            )
        if text is None:
            continue
        if not isinstance(text, str):
            raise ValidationError(f"{field}.{code} must be a string", field=f"{field}.{code}")
        stripped = text.strip()
        if stripped:
            cleaned[code] = stripped
    return cleaned


def require_english(value: Mapping[str, str], field: str) -> None:
    if not (value.get(DEFAULT_LANGUAGE) or "").strip():
        raise ValidationError(f"English {field} is required", field=f"{field}.en")


def check_max_length(value: Mapping[str, str], field: str, max_length: int) -> None:
    for code, text in value.items():
        if len(text) > max_length:
            raise ValidationError(
                f"{field}.{code} must not exceed {max_length} characters",
                field=f"{field}.{code}",
            )
