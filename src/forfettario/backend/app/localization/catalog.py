"""Translation catalogue helpers backed by shared JSON resources."""

from __future__ import annotations

import json
import string
from dataclasses import dataclass
from functools import cache
from importlib import resources
from typing import Any, Mapping

_BASE_LOCALE = "en"
_TRANSLATIONS_PACKAGE = "forfettario.translations"


@dataclass(frozen=True)
class Translator:
    """Callable helper for retrieving localized strings.

    Keyword arguments are interpolated into the message with ``str.format``;
    unknown keys resolve to the key itself so missing entries stay visible.
    """

    locale: str
    _messages: Mapping[str, str]
    _fallback: Mapping[str, str]

    def __call__(self, key: str, **params: Any) -> str:
        template = self._messages.get(key) or self._fallback.get(key, key)
        if not params:
            return template
        return template.format(**params)

    def has(self, key: str) -> bool:
        return key in self._messages or key in self._fallback


@cache
def _available_locales() -> tuple[str, ...]:
    """Return the set of locales with published translation payloads."""

    root = resources.files(_TRANSLATIONS_PACKAGE)
    locales = sorted(
        entry.name.rsplit(".", 1)[0]
        for entry in root.iterdir()
        if entry.name.endswith(".json")
    )
    return tuple(locales) or (_BASE_LOCALE,)


@cache
def _load_messages(locale: str) -> Mapping[str, str]:
    """Load the flat message mapping for the requested locale."""

    resource = resources.files(_TRANSLATIONS_PACKAGE).joinpath(f"{locale}.json")
    if not resource.is_file():
        return {}

    with resource.open("r", encoding="utf-8") as handle:
        payload = json.load(handle)

    messages = payload.get("messages") or {}
    if not isinstance(messages, dict):
        return {}
    return {str(key): str(value) for key, value in messages.items()}


def normalise_locale(locale: str | None) -> str:
    """Normalise requested locale to a supported catalogue key."""

    if not locale:
        return _BASE_LOCALE

    normalized = locale.strip().lower().replace("_", "-").split("-")[0]
    return normalized if normalized in _available_locales() else _BASE_LOCALE


def get_translator(locale: str | None = None) -> Translator:
    """Return a translator instance for the requested locale."""

    normalized = normalise_locale(locale)
    messages = _load_messages(normalized)
    fallback = _load_messages(_BASE_LOCALE) if normalized != _BASE_LOCALE else messages

    return Translator(locale=normalized, _messages=messages, _fallback=fallback)


def load_translations(locale: str | None = None) -> dict[str, Any]:
    """Expose the message catalogue for API consumers."""

    normalized = normalise_locale(locale)

    return {
        "locale": normalized,
        "available_locales": list(_available_locales()),
        "messages": dict(_load_messages(normalized)),
        "fallback": {
            "locale": _BASE_LOCALE,
            "messages": dict(_load_messages(_BASE_LOCALE)),
        },
    }


def _placeholders(template: str) -> set[str]:
    return {
        field_name
        for _, field_name, _, _ in string.Formatter().parse(template)
        if field_name
    }


def find_catalogue_issues() -> list[str]:
    """Report keys or placeholders that differ from the base catalogue."""

    base = _load_messages(_BASE_LOCALE)
    issues: list[str] = []
    for locale in _available_locales():
        if locale == _BASE_LOCALE:
            continue
        messages = _load_messages(locale)
        for key in sorted(set(base) - set(messages)):
            issues.append(f"{locale}: missing key '{key}'")
        for key in sorted(set(messages) - set(base)):
            issues.append(f"{locale}: unknown key '{key}'")
        for key in sorted(set(base) & set(messages)):
            if _placeholders(base[key]) != _placeholders(messages[key]):
                issues.append(f"{locale}: placeholders differ for '{key}'")
    return issues


__all__ = [
    "Translator",
    "find_catalogue_issues",
    "get_translator",
    "load_translations",
    "normalise_locale",
]
