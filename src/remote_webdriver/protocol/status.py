"""
Status codes returned in the ``status`` field of a reply envelope.
"""
from typing import Dict

SUCCESS = 0

ERROR_CODES: Dict[int, str] = {
    7: "no such element",
    8: "no such frame",
    9: "unknown command",
    10: "stale element reference",
    11: "element not visible",
    12: "invalid element state",
    13: "unknown error",
    15: "element is not selectable",
    17: "javascript error",
    19: "xpath lookup error",
    21: "timeout",
    23: "no such window",
    24: "invalid cookie domain",
    25: "unable to set cookie",
    26: "unexpected alert open",
    27: "no alert open",
    28: "script timeout",
    29: "invalid element coordinates",
    32: "invalid selector",
}


def error_category(status: int) -> str:
    """Human-readable category for a status code, synthesized when unknown."""
    message = ERROR_CODES.get(status)
    if message is None:
        message = f"unknown error - {status}"
    return message
