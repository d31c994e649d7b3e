from __future__ import annotations

"""
Internationalization (i18n) helpers for user-facing messages.

Messages are looked up by key in gettext catalogs under ``locales/<lang>``.
Compiled ``.mo`` files are preferred; the ``.po`` source is parsed as a
fallback so a fresh checkout works without a compilation step. Messages may
carry ``str.format`` placeholders (e.g. ``{remaining}``) that callers fill in
through keyword arguments.
"""

import gettext
import os
from typing import Dict, Optional

from fastapi import Request

from src.core.config.settings import settings
from src.core.logging import logger

_translations: Dict[str, gettext.NullTranslations] = {}
_fallback_catalogs: Dict[str, Dict[str, str]] = {}

LOCALES_PATH = os.path.abspath(os.path.join(os.path.dirname(__file__), "../..", "locales"))


def _parse_po_file(po_path: str) -> Dict[str, str]:
    """Parse msgid/msgstr pairs from a .po file, joining continuation lines."""
    catalog: Dict[str, str] = {}
    current_msgid: Optional[str] = None
    current_msgstr: Optional[str] = None
    target: Optional[str] = None

    def flush() -> None:
        if current_msgid and current_msgstr is not None:
            catalog[current_msgid] = current_msgstr or current_msgid

    with open(po_path, "r", encoding="utf-8") as po_file:
        for raw_line in po_file:
            line = raw_line.strip()
            if line.startswith("msgid "):
                flush()
                current_msgid, current_msgstr = _unquote(line[6:]), None
                target = "msgid"
            elif line.startswith("msgstr "):
                current_msgstr = _unquote(line[7:])
                target = "msgstr"
            elif line.startswith('"') and target == "msgid":
                current_msgid = (current_msgid or "") + _unquote(line)
            elif line.startswith('"') and target == "msgstr":
                current_msgstr = (current_msgstr or "") + _unquote(line)
            elif not line:
                target = None
        flush()
    return catalog


def _unquote(value: str) -> str:
    value = value.strip()
    if value.startswith('"') and value.endswith('"'):
        value = value[1:-1]
    return value.replace('\\"', '"').replace("\\n", "\n")


def setup_i18n(locales_path: str = LOCALES_PATH) -> None:
    """
    Load translations for every supported language.

    Raises:
        FileNotFoundError: If the locales directory is not found.
    """
    if not os.path.exists(locales_path):
        raise FileNotFoundError(f"Locales directory not found: {locales_path}")

    for lang in settings.SUPPORTED_LANGUAGES:
        _translations[lang] = gettext.translation(
            domain="messages",
            localedir=locales_path,
            languages=[lang],
            fallback=True,
        )

        po_path = os.path.join(locales_path, lang, "LC_MESSAGES", "messages.po")
        catalog: Dict[str, str] = {}
        if os.path.exists(po_path):
            try:
                catalog = _parse_po_file(po_path)
            except (OSError, UnicodeDecodeError) as exc:
                logger.warning("i18n_po_parse_failed", lang=lang, error=str(exc))

        _fallback_catalogs[lang] = catalog
        logger.debug("i18n_initialized", language=lang, entries=len(catalog))

    logger.info("i18n_setup_complete", default_locale=settings.DEFAULT_LANGUAGE)


def get_translated_message(key: str, locale: str = settings.DEFAULT_LANGUAGE, **params) -> str:
    """
    Retrieve a translated message for the given key and locale.

    Falls back to the default language, then to the key itself. Keyword
    arguments are substituted into the message with ``str.format``.
    """
    if not _translations and os.path.exists(LOCALES_PATH):
        setup_i18n()

    if locale not in _translations:
        locale = settings.DEFAULT_LANGUAGE

    translation = _translations.get(locale)
    translated = translation.gettext(key) if translation else key
    if translated == key:
        translated = _fallback_catalogs.get(locale, {}).get(key, key)
        if translated == key:
            logger.warning("translation_key_not_found", key=key, locale=locale)

    if params:
        try:
            return translated.format(**params)
        except (KeyError, IndexError, ValueError):
            logger.warning("translation_format_failed", key=key, locale=locale)
    return translated


def get_request_language(request: Request) -> str:
    """
    Determine the preferred language from a request.

    Checks the ``lang`` query parameter, then the Accept-Language header, then
    the configured default.
    """
    lang = request.query_params.get("lang")
    if lang and lang in settings.SUPPORTED_LANGUAGES:
        return lang

    accept_language = request.headers.get("Accept-Language", settings.DEFAULT_LANGUAGE)
    for lang in accept_language.split(","):
        lang = lang.split(";")[0].strip().split("-")[0]
        if lang in settings.SUPPORTED_LANGUAGES:
            return lang

    return settings.DEFAULT_LANGUAGE
