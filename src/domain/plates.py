"""
Local licence-plate format.

Local plates follow the ``AB-123-CD`` pattern (two letters, three digits,
two letters), entered with or without hyphens, in any case, with stray
spaces.  Anything else is treated as a foreign plate and never looked up.
"""

from __future__ import annotations

import re

_WITH_HYPHENS = re.compile(r"^[A-Z]{2}-\d{3}-[A-Z]{2}$")
_WITHOUT_HYPHENS = re.compile(r"^([A-Z]{2})(\d{3})([A-Z]{2})$")


def clean_plate(plate: str) -> str:
    return re.sub(r"\s", "", plate or "").upper()


def is_local_plate(plate: str) -> bool:
    cleaned = clean_plate(plate)
    return bool(_WITH_HYPHENS.match(cleaned) or _WITHOUT_HYPHENS.match(cleaned))


def format_plate(plate: str) -> str:
    """``ab 123cd`` -> ``AB-123-CD``; non-matching input is only cleaned."""
    cleaned = clean_plate(plate)
    match = _WITHOUT_HYPHENS.match(cleaned)
    if match:
        return "-".join(match.groups())
    return cleaned
