"""GHS hazard pictogram canonicalisation.

Chemicals store `ghs_symbols` as an ordered list of canonical pictogram
names. Input arrives in several shapes (a list from the JSON API, a JSON
string or comma separated text from CSV files, the short identifiers used
by older form submissions); everything is converted here, once, on the way
in. Unknown pictograms raise ValueError.

    parse_ghs_field('["Flame","Corrosion"]')  -> ["Flame", "Corrosion"]
    parse_ghs_field("Flame,Corrosion")        -> ["Flame", "Corrosion"]
    canonicalize_ghs(["flammable", "Flame"])  -> ["Flame"]
"""

from __future__ import annotations

import json
from typing import Any

GHS_SYMBOLS: tuple[str, ...] = (
    "Exploding Bomb",
    "Flame",
    "Flame Over Circle",
    "Gas Cylinder",
    "Corrosion",
    "Skull and Crossbones",
    "Exclamation Mark",
    "Health Hazard",
    "Environment",
)

# Short identifiers accepted from legacy form submissions
_ALIASES: dict[str, str] = {
    "explosive": "Exploding Bomb",
    "flammable": "Flame",
    "oxidizing": "Flame Over Circle",
    "compressed-gas": "Gas Cylinder",
    "corrosive": "Corrosion",
    "toxic": "Skull and Crossbones",
    "harmful": "Exclamation Mark",
    "irritant": "Exclamation Mark",
    "health-hazard": "Health Hazard",
    "environmental-hazard": "Environment",
}

_LOOKUP: dict[str, str] = {s.lower(): s for s in GHS_SYMBOLS}
_LOOKUP.update(_ALIASES)


def parse_ghs_field(raw: Any) -> list[str]:
    """Turn a raw GHS field into a list of (not yet validated) strings.

    Lists pass through. Strings are tried as JSON first; when that fails
    they are split on commas, so a bare value becomes a one-item list.
    """
    if raw is None:
        return []
    if isinstance(raw, (list, tuple)):
        return [str(s).strip() for s in raw if str(s).strip()]

    text = str(raw).strip()
    if not text:
        return []

    # Strip stray escaping left over from spreadsheet round-trips
    cleaned = text.replace('\\"', '"')
    try:
        parsed = json.loads(cleaned)
    except ValueError:
        return [s.strip().strip('"') for s in cleaned.split(",") if s.strip().strip('"')]

    if isinstance(parsed, list):
        return [str(s).strip() for s in parsed if str(s).strip()]
    return [str(parsed).strip()] if str(parsed).strip() else []


def canonical_symbol(value: str) -> str:
    """Return the canonical pictogram name for `value` (case-insensitive)."""
    key = value.strip().lower()
    symbol = _LOOKUP.get(key) or _LOOKUP.get(key.replace(" ", "-"))
    if symbol is None:
        raise ValueError(
            f"Unknown GHS symbol '{value}'. Choose: {', '.join(GHS_SYMBOLS)}"
        )
    return symbol


def canonicalize_ghs(raw: Any) -> list[str]:
    """Parse and validate a GHS field into a de-duplicated ordered list."""
    result: list[str] = []
    for value in parse_ghs_field(raw):
        symbol = canonical_symbol(value)
        if symbol not in result:
            result.append(symbol)
    return result
