"""Translation dictionaries.

Each ``src/lang/<locale>.json`` file holds one locale's strings::

    {"greeting": "Hello, {name}!", "nav": {"home": "Home"}}

Nested objects flatten to dotted keys (``nav.home``). Placeholders in
``{braces}`` are filled from keyword arguments to :meth:`Translator.t`.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Iterator, Mapping
from contextvars import ContextVar
from pathlib import Path
from types import MappingProxyType
from typing import Any

from warren.rendering.engine import provider

logger = logging.getLogger("warren.i18n")

_PLACEHOLDER = re.compile(r"\{(\w+)\}")

Dictionaries = Mapping[str, Mapping[str, str]]


def _flatten(data: Mapping[str, Any], prefix: str = "") -> Iterator[tuple[str, str]]:
    for key, value in data.items():
        name = f"{prefix}{key}"
        if isinstance(value, Mapping):
            yield from _flatten(value, f"{name}.")
        else:
            yield name, str(value)


def load_dictionaries(lang_dir: str | Path) -> Dictionaries:
    """Load every ``*.json`` dictionary in *lang_dir*, keyed by file stem.

    Missing directories yield no dictionaries. Files that cannot be read
    or parsed are skipped with a warning.
    """
    directory = Path(lang_dir)
    if not directory.is_dir():
        return MappingProxyType({})

    loaded: dict[str, Mapping[str, str]] = {}
    for file in sorted(directory.glob("*.json")):
        try:
            data = json.loads(file.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            logger.warning("Skipping dictionary %s: %s", file, exc)
            continue
        if not isinstance(data, dict):
            logger.warning("Skipping dictionary %s: top level must be an object", file)
            continue
        loaded[file.stem] = MappingProxyType(dict(_flatten(data)))

    logger.debug("Loaded dictionaries for %s", sorted(loaded))
    return MappingProxyType(loaded)


class Translator:
    """Looks up strings for one locale.

    Falls back to the default locale's dictionary, then to the first
    loaded dictionary. Unknown keys translate to themselves.
    """

    __slots__ = ("default_locale", "dictionaries", "locale")

    def __init__(
        self,
        locale: str,
        dictionaries: Dictionaries,
        *,
        default_locale: str = "en-US",
    ) -> None:
        self.locale = locale
        self.dictionaries = dictionaries
        self.default_locale = default_locale

    @property
    def dictionary(self) -> Mapping[str, str]:
        for candidate in (self.locale, self.default_locale):
            found = self.dictionaries.get(candidate)
            if found is not None:
                return found
        return next(iter(self.dictionaries.values()), MappingProxyType({}))

    @property
    def locales(self) -> tuple[str, ...]:
        return tuple(self.dictionaries)

    def t(self, key: str, **params: object) -> str:
        """Translate *key*, filling ``{name}`` placeholders from *params*."""
        text = self.dictionary.get(key, key)
        if not params:
            return text
        return _PLACEHOLDER.sub(
            lambda m: str(params[m.group(1)]) if m.group(1) in params else m.group(0),
            text,
        )

    __call__ = t

    def __repr__(self) -> str:
        return f"Translator(locale={self.locale!r}, locales={list(self.dictionaries)!r})"


_translator_var: ContextVar[Translator | None] = ContextVar("warren_translator", default=None)


@provider
def I18nProvider(  # noqa: N802
    initial_locale: str,
    dictionaries: Dictionaries,
    default_locale: str = "en-US",
) -> Iterator[None]:
    """Make a :class:`Translator` available to everything rendered inside."""
    token = _translator_var.set(
        Translator(initial_locale, dictionaries, default_locale=default_locale)
    )
    try:
        yield
    finally:
        _translator_var.reset(token)


def use_translation() -> Translator:
    """The active translator.

    Inside a render this is the one installed by :func:`I18nProvider`;
    elsewhere in a request it is built from the request context.

    Raises ``LookupError`` outside both.
    """
    active = _translator_var.get()
    if active is not None:
        return active
    from warren.context import get_request_context

    return get_request_context().translator
