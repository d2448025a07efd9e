"""payload.py

Assembly of structured log payloads.

A payload is an insertion-ordered dict of string keys to string
values. Callers supply metadata either as a mapping or as a flat
(key, value, key, value, ...) sequence; both shapes are normalised
here so the rest of the package only ever sees a dict.
"""

from __future__ import annotations

from collections.abc import Iterable as IterableABC
from typing import Any, Iterable, Mapping, Optional, Union

MESSAGE_KEY = "msg"
MISSING_VALUE = "MISSING"

Fields = Union[Mapping[str, Any], Iterable[Any], None]


def normalize_fields(fields: Fields) -> dict[str, str]:
    """
    Turn a mapping or flat alternating sequence into a dict.

    An odd-length sequence leaves its trailing key unmatched; that key
    is given MISSING_VALUE instead of being dropped. Never raises.
    """
    if fields is None:
        return {}

    if isinstance(fields, Mapping):
        return {str(k): str(v) for k, v in fields.items()}

    if isinstance(fields, (str, bytes)):
        # A lone string is a single key with no value.
        tokens = [fields.decode("utf-8", "replace") if isinstance(fields, bytes) else fields]
    elif not isinstance(fields, IterableABC):
        # Any other scalar is likewise a single key.
        tokens = [str(fields)]
    else:
        tokens = [str(t) for t in fields]

    if len(tokens) % 2 != 0:
        tokens.append(MISSING_VALUE)

    result: dict[str, str] = {}
    for i in range(0, len(tokens), 2):
        result[tokens[i]] = tokens[i + 1]
    return result


def build_payload(message: str, fields: Fields = None) -> dict[str, str]:
    """
    Build the payload for one log entry.

    The message is stored under "msg" first; a caller field literally
    named "msg" overwrites it.
    """
    payload: dict[str, str] = {MESSAGE_KEY: str(message)}
    payload.update(normalize_fields(fields))
    return payload


def format_payload(payload: Optional[Mapping[str, str]]) -> str:
    """Render a payload as {k:v k2:v2} in insertion order."""
    if not payload:
        return "{}"
    return "{" + " ".join(f"{k}:{v}" for k, v in payload.items()) + "}"
