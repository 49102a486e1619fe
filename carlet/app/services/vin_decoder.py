"""
VIN model-year decoder.

Only the model year can be derived: it is encoded in the 10th character
of a 17-character VIN. Make, model and trim need a manufacturer database
this service does not have, so they always come back empty.
"""

from typing import Dict, Optional, Union

VIN_LENGTH = 17
YEAR_POSITION = 9

# Letters I, O, Q, U, Z and the digit 0 are never used for the model year
VIN_YEAR_CODES: Dict[str, int] = {
    **{letter: 2010 + offset for offset, letter in enumerate("ABCDEFGHJKLMNPRSTVWXY")},
    **{digit: 2000 + int(digit) for digit in "123456789"},
}


def decode_year(vin: Optional[str]) -> Optional[int]:
    """
    Model year of ``vin``, or None when it is not a 17-character VIN or
    its year character is unmapped.
    """
    if not vin:
        return None
    vin = vin.strip().upper()
    if len(vin) != VIN_LENGTH or not vin.isalnum():
        return None
    return VIN_YEAR_CODES.get(vin[YEAR_POSITION])


def decode_vin(vin: str) -> Dict[str, Union[int, str, None]]:
    """Decode what can be decoded; see the module docstring for limits."""
    return {"year": decode_year(vin), "make": "", "model": "", "trim": ""}
