"""JSON catalogue lookup with fallback to the default locale."""

from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Any

LOCALES_DIR = Path(__file__).with_name("locales")


@lru_cache(maxsize=32)
def _load_catalogue(path: Path) -> dict[str, str]:
    if not path.exists():
        return {}
    with path.open("r", encoding="utf-8") as fp:
        return json.load(fp)


class I18nService:
    def __init__(self, *, locales_path: str | Path | None = None, default_locale: str = "en") -> None:
        self.locales_path = Path(locales_path or LOCALES_DIR)
        self.default_locale = default_locale.lower()

    def resolve_locale(self, language_code: str | None) -> str:
        """Pick the catalogue for a Telegram ``language_code`` such as ``uk`` or ``en-US``."""

        if language_code:
            base = language_code.split("-")[0].lower()
            if (self.locales_path / f"{base}.json").exists():
                return base
        return self.default_locale

    def gettext(self, key: str, *, locale: str | None = None, **kwargs: Any) -> str:
        loc = self.resolve_locale(locale)
        text = self._lookup(loc, key)
        if text is None and loc != self.default_locale:
            text = self._lookup(self.default_locale, key)
        if text is None:
            text = key
        return text.format(**kwargs) if kwargs else text

    def _lookup(self, locale: str, key: str) -> str | None:
        return _load_catalogue(self.locales_path / f"{locale}.json").get(key)


__all__ = ["I18nService"]
