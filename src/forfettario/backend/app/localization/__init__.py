"""Shared translation helpers bridging backend services and static catalogues."""

from .catalog import (
    Translator,
    find_catalogue_issues,
    get_translator,
    load_translations,
    normalise_locale,
)

__all__ = [
    "Translator",
    "find_catalogue_issues",
    "get_translator",
    "load_translations",
    "normalise_locale",
]
