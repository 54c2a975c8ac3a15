"""
i18n (Internationalization) package

Provides locale helpers, RTL detection and locale
fallback resolution for the multi-locale content system.
"""

from .locale import (
    RTL_LOCALES,
    base_language,
    is_rtl_locale,
    locale_fallback_chain,
)

__all__ = [
    "RTL_LOCALES",
    "base_language",
    "is_rtl_locale",
    "locale_fallback_chain",
]
