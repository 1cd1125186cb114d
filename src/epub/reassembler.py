"""Re-injection of translated chunks into a chapter skeleton."""

import re

from src.epub.chunker import CHUNK_SEPARATOR, Skeleton

HTML_OPEN = re.compile(r"<html\b[^>]*>", re.IGNORECASE)

# Primary language subtags written right-to-left
RTL_LANGUAGES: frozenset[str] = frozenset(
    {"ar", "arc", "ckb", "dv", "fa", "he", "ps", "sd", "ug", "ur", "yi"}
)


def text_direction(language: str) -> str:
    """Return ``"rtl"`` or ``"ltr"`` for a BCP 47 language tag."""
    primary = re.split(r"[-_]", language.strip().lower(), maxsplit=1)[0]
    return "rtl" if primary in RTL_LANGUAGES else "ltr"


def _set_attribute(start_tag: str, name: str, value: str) -> str:
    """Set or add one attribute on a start tag."""
    # The lookbehind keeps "lang" from matching inside "xml:lang"
    pattern = re.compile(rf"(?<=\s){re.escape(name)}\s*=\s*(\"[^\"]*\"|'[^']*')")
    replacement = f'{name}="{value}"'
    if pattern.search(start_tag):
        return pattern.sub(lambda _: replacement, start_tag, count=1)
    closing = "/>" if start_tag.endswith("/>") else ">"
    return f"{start_tag[: -len(closing)].rstrip()} {replacement}{closing}"


def localize_root(prefix: str, language: str) -> str:
    """Set direction and language attributes on the ``<html>`` start tag."""
    match = HTML_OPEN.search(prefix)
    if match is None:
        return prefix

    tag = match.group()
    tag = _set_attribute(tag, "dir", text_direction(language))
    tag = _set_attribute(tag, "lang", language)
    if re.search(r"\sxml:lang\s*=", tag):
        tag = _set_attribute(tag, "xml:lang", language)
    return prefix[: match.start()] + tag + prefix[match.end():]


def reassemble(
    skeleton: Skeleton | None,
    translated_texts: list[str],
    target_language: str,
) -> str:
    """Build the final chapter markup.

    Args:
        skeleton: The chapter shell, or None when the whole file was
                  translated as opaque text.
        translated_texts: Translated chunk texts in chunk order.
        target_language: Language tag written to the document root.

    Returns:
        The chapter markup to write back into the archive.
    """
    body = CHUNK_SEPARATOR.join(translated_texts)
    if skeleton is None:
        return body
    return localize_root(skeleton.prefix, target_language) + body + skeleton.suffix
