# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Shared id parsing for controllers."""
from typing import Any, Optional

from fastapi import HTTPException


def parse_positive_id(value: Any, name: str = "ID") -> int:
    """Accept ints and digit strings; anything else is a 400."""
    if isinstance(value, bool):
        raise HTTPException(status_code=400, detail=f"Invalid {name} parameter")
    if isinstance(value, int):
        number = value
    elif isinstance(value, str) and value.strip().isascii() and value.strip().isdigit():
        number = int(value.strip())
    else:
        raise HTTPException(status_code=400, detail=f"Invalid {name} parameter")
    if number <= 0:
        raise HTTPException(status_code=400, detail=f"Invalid {name} parameter")
    return number


def parse_optional_id(value: Any, name: str) -> Optional[int]:
    if value is None or value == "":
        return None
    return parse_positive_id(value, name)
