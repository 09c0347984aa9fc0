"""Localization: locale resolution from the URL, cookie, and
``Accept-Language``, plus JSON translation dictionaries.
"""

from warren.i18n.dictionaries import I18nProvider, Translator, load_dictionaries, use_translation
from warren.i18n.locale import (
    LocaleMatch,
    LocaleSource,
    add_locale_prefix,
    resolve_locale,
    strip_locale_from_path,
)

__all__ = [
    "I18nProvider",
    "LocaleMatch",
    "LocaleSource",
    "Translator",
    "add_locale_prefix",
    "load_dictionaries",
    "resolve_locale",
    "strip_locale_from_path",
    "use_translation",
]
