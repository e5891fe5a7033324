"""Normalize device slugs and mapping names to snake_case measurement and field names."""

import re

from .errors import ConfigError

# Runs of anything that is not a letter or digit separate words
_SEPARATORS = re.compile(r"[^0-9A-Za-z]+")
# camelCase / PascalCase boundaries: "dailyEnergy" -> "daily Energy", "DCVoltage" -> "DC Voltage"
_LOWER_UPPER = re.compile(r"([a-z0-9])([A-Z])")
_ACRONYM_WORD = re.compile(r"([A-Z]+)([A-Z][a-z])")


def normalize_name(raw: str) -> str:
    """
    Convert a human-readable name to snake_case.

    - "AC Voltage" -> "ac_voltage", "Solis S5" -> "solis_s5".
    - camelCase and acronyms are split: "DCVoltage" -> "dc_voltage".
    - Leading/trailing separators are dropped; already snake_case names are unchanged.

    Raises ConfigError when nothing usable remains.
    """
    s = raw.strip()
    s = _ACRONYM_WORD.sub(r"\1 \2", s)
    s = _LOWER_UPPER.sub(r"\1 \2", s)
    words = [w for w in _SEPARATORS.split(s) if w]
    if not words:
        raise ConfigError(f"Name {raw!r} has no letters or digits")
    return "_".join(w.lower() for w in words)
