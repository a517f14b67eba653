import json
from decimal import Decimal
from functools import lru_cache
from pathlib import Path
from typing import Optional

import config

L10N_DIR = Path(__file__).resolve().parent.parent / "l10n"


class Localizator:

    @staticmethod
    @lru_cache(maxsize=None)
    def _load(language: str) -> dict:
        localization_file = L10N_DIR / f"{language}.json"
        with open(localization_file, "r", encoding="UTF-8") as f:
            return json.loads(f.read())

    @staticmethod
    def get_text(key: str, lang: Optional[str] = None) -> str:
        """
        Get localized text for given key.

        Args:
            key: Localization key
            lang: Optional language code ("ar", "en").
                  If None, uses config.STORE_LANGUAGE (default).
                  Use this parameter in concurrent contexts (e.g., FastAPI routes)
                  to avoid global state race conditions.

        Returns:
            Localized text string

        Raises:
            KeyError: key is missing from the language file
        """
        language = lang if lang is not None else config.STORE_LANGUAGE
        return Localizator._load(language)[key]

    @staticmethod
    def format_amount(amount, lang: Optional[str] = None) -> str:
        """
        Format an IQD amount with thousands separators and currency name.

        Examples:
            >>> Localizator.format_amount(35000, lang="en")
            '35,000 IQD'
        """
        currency = Localizator.get_text("currency_text", lang=lang)
        return f"{int(Decimal(str(amount))):,} {currency}"
