"""Kanonisierung und Validierung von EAN/UPC-Barcodes."""

from __future__ import annotations

import re

_NON_DIGITS = re.compile(r"[^0-9]")

EAN8_LENGTH = 8
EAN13_LENGTH = 13
VALID_LENGTHS = frozenset({8, 12, 13, 14})


def normalize(raw: str) -> str:
    """
    Entfernt alle Nicht-Ziffern und füllt kurze Codes mit führenden Nullen auf:
    bis 7 Ziffern auf EAN-8, 9 bis 12 Ziffern auf EAN-13. Alle anderen Längen
    bleiben unverändert und werden von `is_valid` abgelehnt.
    """
    digits = _NON_DIGITS.sub("", raw)
    if len(digits) < EAN8_LENGTH:
        return digits.zfill(EAN8_LENGTH)
    if EAN8_LENGTH < len(digits) < EAN13_LENGTH:
        return digits.zfill(EAN13_LENGTH)
    return digits


def is_valid(canonical: str) -> bool:
    return canonical.isascii() and canonical.isdigit() and len(canonical) in VALID_LENGTHS
