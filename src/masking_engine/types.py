"""
Redshift data type normalization.

Masking policy signatures (`WITH(value <type>)`) need valid Redshift type names,
not the free-form strings information_schema reports. Rules are tried in order;
the first matching pattern wins.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from typing import TypeAlias

from src.constants import DEFAULT_TEXT_TYPE
from src.logger import get_logger

_LOGGER = get_logger("types")

TypeRenderer: TypeAlias = Callable[[int | None], str]


def _fixed(type_name: str) -> TypeRenderer:
    return lambda _length: type_name


def _char(length: int | None) -> str:
    return f"CHAR({length or 1})"


DATA_TYPE_RULES: tuple[tuple[re.Pattern[str], TypeRenderer], ...] = (
    (re.compile(r"^(?:character varying|varchar|text)", re.IGNORECASE), _fixed(DEFAULT_TEXT_TYPE)),
    (re.compile(r"^(?:character|char)$", re.IGNORECASE), _char),
    (
        re.compile(r"^(?:numeric|decimal|integer|int|smallint|bigint|real|double)", re.IGNORECASE),
        _fixed("NUMERIC"),
    ),
    (re.compile(r"^date$", re.IGNORECASE), _fixed("DATE")),
    (re.compile(r"^timestamp", re.IGNORECASE), _fixed("TIMESTAMP")),
    (re.compile(r"^(?:boolean|bool)", re.IGNORECASE), _fixed("BOOLEAN")),
)


def normalize_data_type(
    data_type: str,
    char_max_length: int | None = None,
    logger: logging.Logger | None = None,
) -> str:
    """
    Map an information_schema data type to a masking policy value type.

    Unknown types fall back to VARCHAR(MAX) and log a warning.

    Examples:
        normalize_data_type("character varying", 256) -> "VARCHAR(MAX)"
        normalize_data_type("character", 11)          -> "CHAR(11)"
        normalize_data_type("bigint")                 -> "NUMERIC"
    """
    for pattern, render in DATA_TYPE_RULES:
        if pattern.match(data_type):
            return render(char_max_length)

    (logger or _LOGGER).warning(
        "unknown data type '%s', defaulting to %s", data_type, DEFAULT_TEXT_TYPE
    )
    return DEFAULT_TEXT_TYPE
