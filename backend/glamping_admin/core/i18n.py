"""Resolution of localized text fields.

Names of zones, items, taxes and menu products are stored either as a plain
string or as a mapping of locale code to string (``{"vi": ..., "en": ...}``).
Call sites go through :func:`localize` instead of inspecting the shape.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Union

from glamping_admin.core.config import get_settings

LocalizedText = Union[str, Mapping[str, str]]


def localize(
    value: LocalizedText | None,
    locale: str | None = None,
    fallback: Sequence[str] | None = None,
    default: str = "",
) -> str:
    """Return the text for ``locale``, walking ``fallback`` when missing.

    ``fallback`` defaults to the configured fallback locales.
    """
    if value is None:
        return default
    if isinstance(value, str):
        return value
    if locale and value.get(locale):
        return value[locale]
    if fallback is None:
        fallback = get_settings().fallback_locales
    for code in fallback:
        if value.get(code):
            return value[code]
    for text in value.values():
        if text:
            return text
    return default
