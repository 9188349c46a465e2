"""Normalization of boolean-like flags coming from remote tables.

Human-edited tables store flags as checkboxes, ``"True"``/``"False"`` or
``"Yes"``/``"No"`` strings. They are turned into real booleans here so
nothing past the adapter sees a string flag.
"""

from typing import Any


TRUE_STRINGS = frozenset({"true", "yes", "y", "1", "on", "checked"})


def coerce_flag(value: Any) -> bool:
    """Interpret a boolean-like remote value. Unknown values are False."""
    if isinstance(value, bool):
        return value
    if isinstance(value, int | float):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in TRUE_STRINGS
    return False
