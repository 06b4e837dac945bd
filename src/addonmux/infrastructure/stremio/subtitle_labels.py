"""Subtitle language normalization and display labels."""

from __future__ import annotations

_ISO639_2_TO_1: dict[str, str] = {
    "eng": "en",
    "spa": "es",
    "fra": "fr",
    "fre": "fr",
    "deu": "de",
    "ger": "de",
    "ita": "it",
    "por": "pt",
    "nld": "nl",
    "dut": "nl",
    "rus": "ru",
    "zho": "zh",
    "chi": "zh",
    "jpn": "ja",
    "kor": "ko",
    "ara": "ar",
    "hin": "hi",
    "tur": "tr",
    "pol": "pl",
    "swe": "sv",
    "nor": "no",
    "dan": "da",
    "fin": "fi",
    "ell": "el",
    "gre": "el",
    "ces": "cs",
    "cze": "cs",
    "hun": "hu",
    "ron": "ro",
    "rum": "ro",
    "tha": "th",
    "vie": "vi",
    "ind": "id",
    "heb": "he",
}

_LANGUAGE_NAMES: dict[str, str] = {
    "ar": "Arabic",
    "bg": "Bulgarian",
    "bn": "Bangla",
    "ca": "Catalan",
    "cs": "Czech",
    "da": "Danish",
    "de": "German",
    "el": "Greek",
    "en": "English",
    "es": "Spanish",
    "et": "Estonian",
    "fa": "Persian",
    "fi": "Finnish",
    "fr": "French",
    "he": "Hebrew",
    "hi": "Hindi",
    "hr": "Croatian",
    "hu": "Hungarian",
    "id": "Indonesian",
    "is": "Icelandic",
    "it": "Italian",
    "ja": "Japanese",
    "ko": "Korean",
    "lt": "Lithuanian",
    "lv": "Latvian",
    "ms": "Malay",
    "nl": "Dutch",
    "no": "Norwegian",
    "pl": "Polish",
    "pt": "Portuguese",
    "ro": "Romanian",
    "ru": "Russian",
    "sk": "Slovak",
    "sl": "Slovenian",
    "sr": "Serbian",
    "sv": "Swedish",
    "ta": "Tamil",
    "te": "Telugu",
    "th": "Thai",
    "tr": "Turkish",
    "uk": "Ukrainian",
    "ur": "Urdu",
    "vi": "Vietnamese",
    "zh": "Chinese",
}


def normalize_language_code(lang: str | None) -> str:
    """Map ISO 639-2 or free-form codes to a 2-letter code (``"eng"`` -> ``"en"``)."""
    lower = (lang or "").strip().lower()
    mapped = _ISO639_2_TO_1.get(lower)
    if mapped is not None:
        return mapped
    return lower[:2]


def language_display_name(code: str | None) -> str:
    """English name for a 2-letter code, ``"Unknown"`` when not recognized."""
    return _LANGUAGE_NAMES.get((code or "").strip().lower(), "Unknown")


def _looks_like_language_label(label: str, language_name: str, code: str) -> bool:
    lower = label.lower()
    name = language_name.lower()
    return (
        lower == code
        or lower == name
        or lower.startswith(name)
        or (bool(code) and lower.startswith(code))
    )


def build_subtitle_label(
    lang: str | None,
    raw_label: str | None,
    provider: str | None,
) -> str:
    """Build ``"<Language> - <provider>"`` for a subtitle track.

    The provider's own label is used unless it is blank, a URL, or just
    restates the language; then the addon name is used instead.
    """
    code = normalize_language_code(lang)
    language_name = language_display_name(code)
    label = (raw_label or "").strip()
    fallback = (provider or "").strip()

    if not label:
        provider_name = fallback
    elif _looks_like_language_label(label, language_name, code):
        provider_name = fallback
    elif label.lower().startswith("http"):
        provider_name = fallback
    else:
        provider_name = label

    if provider_name and provider_name.lower() != language_name.lower():
        return f"{language_name} - {provider_name}"
    return language_name
