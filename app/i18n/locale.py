"""
Locale helpers

Pure functions for BCP 47 locale handling:
- RTL (right-to-left) language detection
- Fallback chain resolution (exact → base language → fallback)
"""

from __future__ import annotations

# ── Constants ─────────────────────────────────────────────────────────────────

# BCP 47 base language codes whose scripts read right-to-left
RTL_LOCALES: frozenset[str] = frozenset({"ar", "he", "fa", "ur", "yi", "ku"})


# ── Public helpers ────────────────────────────────────────────────────────────


def base_language(locale: str) -> str:
    """Return the base language tag, e.g. "fr" for "fr-CA"."""
    return locale.split("-")[0].lower()


def is_rtl_locale(locale: str) -> bool:
    """Return True when the given BCP 47 locale is right-to-left.

    Compares only the base language tag (before the first hyphen), so
    both "ar" and "ar-SA" are correctly identified as RTL.
    """
    return base_language(locale) in RTL_LOCALES


def locale_fallback_chain(locale: str, fallback_locale: str | None = None) -> list[str]:
    """Ordered, de-duplicated list of locales to try for a lookup.

    1. Exact locale (e.g. "fr-CA")
    2. Base language (e.g. "fr")
    3. Fallback locale (e.g. "en"), when given

    >>> locale_fallback_chain("fr-CA", "en")
    ['fr-CA', 'fr', 'en']
    """
    chain: list[str] = []
    for candidate in (locale, base_language(locale), fallback_locale):
        if candidate and candidate not in chain:
            chain.append(candidate)
    return chain

