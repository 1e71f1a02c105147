import pytest

from services.errors import ValidationError
from services.localization import (
    SUPPORTED_LANGUAGES,
    LanguageCode,
    normalize_localized,
    require_english,
    resolve,
    resolve_language,
)


BUNDLES = [
    {},
    {"en": "Welcome"},
    {"en": "Welcome", "es": "Bienvenido"},
    {"es": "Bienvenido"},
    {"en": "", "ko": "환영합니다"},
    {"en": "   ", "ja": ""},
    {"hi": "स्वागत", "ru": "Добро пожаловать", "zh": "欢迎"},
]


@pytest.mark.parametrize("bundle", BUNDLES)
@pytest.mark.parametrize("language", SUPPORTED_LANGUAGES + ["fr", "", None])
def test_resolve_is_non_empty_only_when_requested_or_english_present(bundle, language):
    value = resolve(bundle, language)
    code = resolve_language(language)
    requested = bundle.get(code) or ""
    english = bundle.get("en") or ""
    if requested:
        assert value == bundle[code]
    elif english:
        assert value == bundle["en"]
    else:
        assert value == ""


@pytest.mark.parametrize("value", [None, "plain", 42, ["en"], {"en": None}, {"en": 5}])
def test_resolve_never_raises_on_malformed_input(value):
    assert resolve(value, "es") == ""


def test_resolve_accepts_language_enum():
    assert resolve({"en": "Rise", "ko": "상승"}, LanguageCode.KO) == "상승"


def test_resolve_language_defaults_to_english():
    assert resolve_language("ES") == "es"
    assert resolve_language("pt") == "en"
    assert resolve_language(None) == "en"


def test_normalize_localized_strips_and_drops_empty():
    cleaned = normalize_localized({"en": "  Hello ", "es": "", "ja": None}, "title")
    assert cleaned == {"en": "Hello"}


def test_normalize_localized_rejects_unknown_language():
    with pytest.raises(ValidationError) as exc_info:
        normalize_localized({"en": "Hello", "fr": "Bonjour"}, "title")
    assert exc_info.value.field == "title.fr"


def test_normalize_localized_rejects_non_mapping():
    with pytest.raises(ValidationError):
        normalize_localized("Hello", "title")


def test_require_english_names_the_field():
    with pytest.raises(ValidationError) as exc_info:
        require_english({"es": "Hola"}, "title")
    assert exc_info.value.field == "title.en"
    assert exc_info.value.kind == "validation_error"


def test_resolve_returns_whitespace_translation_verbatim():
    assert resolve({"es": " ", "en": ""}, "es") == " "
    assert resolve({"es": "", "en": "  Hello "}, "es") == "  Hello "
