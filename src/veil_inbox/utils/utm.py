# src/veil_inbox/utils/utm.py
"""UTM campaign parameter helpers."""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, replace
from urllib.parse import parse_qs, urlencode, urlsplit, urlunsplit

UTM_FIELDS: tuple[str, ...] = ("source", "medium", "campaign", "term", "content")
MAX_UTM_LENGTH = 100

_UNSAFE_CHARS = re.compile(r"[<>\"']")


@dataclass(frozen=True)
class UTMParams:
    source: str | None = None
    medium: str | None = None
    campaign: str | None = None
    term: str | None = None
    content: str | None = None

    @property
    def has_utm(self) -> bool:
        return any(getattr(self, field) for field in UTM_FIELDS)

    def as_dict(self) -> dict[str, str | None]:
        return {field: getattr(self, field) for field in UTM_FIELDS}


def _query_values(source: str | Mapping[str, object]) -> dict[str, str]:
    if isinstance(source, Mapping):
        values: dict[str, str] = {}
        for key, value in source.items():
            if isinstance(value, (list, tuple)):
                value = value[0] if value else None
            if value is not None:
                values[str(key)] = str(value)
        return values

    text = source.strip()
    parts = urlsplit(text)
    query = parts.query if parts.scheme and parts.netloc else text.lstrip("?")
    return {key: items[0] for key, items in parse_qs(query).items() if items}


def extract_utm(source: str | Mapping[str, object]) -> UTMParams:
    """Read the five ``utm_*`` parameters from a URL, query string or mapping.

    Missing parameters are ``None``; a source without any of them yields
    ``has_utm == False``.
    """
    values = _query_values(source)
    return UTMParams(**{field: values.get(f"utm_{field}") or None for field in UTM_FIELDS})


def _sanitize(value: str | None) -> str | None:
    if not value:
        return None
    cleaned = _UNSAFE_CHARS.sub("", value).strip()[:MAX_UTM_LENGTH]
    return cleaned or None


def sanitize_utm(params: UTMParams) -> UTMParams:
    """Strip quote and angle bracket characters and cap each value at 100 chars."""
    return replace(params, **{field: _sanitize(getattr(params, field)) for field in UTM_FIELDS})


def build_utm_url(
    base_url: str,
    source: str,
    medium: str | None = None,
    campaign: str | None = None,
    term: str | None = None,
    content: str | None = None,
) -> str:
    """Append UTM parameters to ``base_url``, keeping its existing query."""
    parts = urlsplit(base_url)
    query = [(key, values[0]) for key, values in parse_qs(parts.query).items()]
    query = [(key, value) for key, value in query if not key.startswith("utm_")]

    supplied = {
        "source": source,
        "medium": medium,
        "campaign": campaign,
        "term": term,
        "content": content,
    }
    query.extend((f"utm_{field}", value) for field, value in supplied.items() if value)
    return urlunsplit(parts._replace(query=urlencode(query)))
