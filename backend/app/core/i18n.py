"""Translated API messages.

Services raise ``ValueError`` with a message key (``"product_not_found"``);
the API turns the key into text for the caller's language using the JSON
catalogues under ``locales/<lang>/messages.json``.
"""

from __future__ import annotations

import json
import logging
from functools import lru_cache
from pathlib import Path

from backend.app.core.config import settings

logger = logging.getLogger(__name__)

LOCALES_DIR = Path(__file__).resolve().parent.parent / "locales"

SUPPORTED_LANGUAGES = frozenset(
    p.name for p in LOCALES_DIR.iterdir() if (p / "messages.json").is_file()
) if LOCALES_DIR.is_dir() else frozenset()


class _Placeholders(dict):
    def __missing__(self, key: str) -> str:
        return "{" + key + "}"


@lru_cache(maxsize=None)
def catalogue(lang: str) -> dict[str, str]:
    if lang not in SUPPORTED_LANGUAGES:
        return {}
    with open(LOCALES_DIR / lang / "messages.json", encoding="utf-8") as f:
        return json.load(f)


def translate(lang: str, key: str, **kwargs: str) -> str:
    """Message *key* in *lang*, else in the default language, else the key itself.

    ``{name}`` placeholders are filled from *kwargs*; unknown ones are kept.
    """
    text = catalogue(lang).get(key) or catalogue(settings.DEFAULT_LANGUAGE).get(key)
    if text is None:
        logger.warning("No translation for %r (%s)", key, lang)
        return key
    return text.format_map(_Placeholders(kwargs)) if kwargs else text
