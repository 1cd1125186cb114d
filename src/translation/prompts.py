"""Constant instruction prompt prepended to every chunk."""

# Display names for the language tags most commonly configured
LANGUAGE_NAMES: dict[str, str] = {
    "ar": "Arabic",
    "de": "German",
    "en": "English",
    "es": "Spanish",
    "fa": "Persian",
    "fr": "French",
    "he": "Hebrew",
    "it": "Italian",
    "ja": "Japanese",
    "ko": "Korean",
    "pt": "Portuguese",
    "ru": "Russian",
    "tr": "Turkish",
    "ur": "Urdu",
    "zh": "Chinese",
}

TRANSLATION_PROMPT = """You are a professional literary translator.
Task: translate the following novel text from {source_language} into {target_language}.
Strict rules:
1. Never translate HTML tags or attributes (such as <p>, <div>, class, id).
2. Preserve the structure of the text exactly.
3. Do not add introductions, explanations or commentary. Output only the translated text.
4. If you find unintelligible text or strange symbols, leave them unchanged.

Text:
{text}"""


def language_name(code: str) -> str:
    """Human-readable name for a language tag, or the tag itself."""
    return LANGUAGE_NAMES.get(code.split("-")[0].lower(), code)


def build_translation_prompt(text: str, source_language: str, target_language: str) -> str:
    return TRANSLATION_PROMPT.format(
        source_language=language_name(source_language),
        target_language=language_name(target_language),
        text=text,
    )
