import re
from typing import Any

_NON_ALNUM = re.compile(r"[^0-9a-z]+")


def strip_bom(text: str) -> str:
    """Strip UTF-8 BOM from the start of text (motion-capture CSVs often include it)."""
    return text.removeprefix("\ufeff")


def nullify_empty_strings(row: dict[str, str]) -> dict[str, Any]:
    return {strip_bom(k): (None if v is None or v.strip() == "" else v) for k, v in row.items() if k is not None}


def header_key(name: str) -> str:
    """Lowercase a header and drop everything but letters and digits."""
    return _NON_ALNUM.sub("", strip_bom(name).lower())
