"""Stateless resumption tokens.

A token is the six fields of a harvesting cursor, each form-escaped on its
own, joined with ``:`` and base64url encoded. Escaping happens before the
join, so no field can ever contain a raw delimiter, whatever its content.
"""

from __future__ import annotations

import binascii
import re
from dataclasses import dataclass, replace
from urllib.parse import quote_plus, unquote_plus

from digirepo.oai.protocol.errors import ResumptionTokenDecodeError
from digirepo.oai.util.base64 import (
    urlsafe_b64decode_unpadded,
    urlsafe_b64encode_unpadded,
)

DELIMITER = ":"
FIELD_COUNT = 6

_TOKEN_ALPHABET = re.compile(r"[A-Za-z0-9_-]+={0,2}")
_OFFSET = re.compile(r"[0-9]+")


@dataclass(frozen=True)
class ResumptionToken:
    """Everything needed to continue a list request.

    String fields hold the values exactly as the harvester sent them,
    with ``""`` standing in for an absent argument.
    """

    verb: str
    metadata_prefix: str = ""
    from_: str = ""
    until: str = ""
    set_spec: str = ""
    offset: int = 0

    def __post_init__(self) -> None:
        if self.offset < 0:
            raise ValueError(f"Offset must be non-negative, got {self.offset}")

    def advance(self, offset: int) -> ResumptionToken:
        return replace(self, offset=offset)

    def encode(self) -> str:
        return encode(self)

    @classmethod
    def decode(cls, value: str) -> ResumptionToken:
        return decode(value)


def _escape(value: str) -> str:
    return quote_plus(value, safe="")


def encode(token: ResumptionToken) -> str:
    fields = (
        token.verb,
        token.metadata_prefix,
        token.from_,
        token.until,
        token.set_spec,
        str(token.offset),
    )
    joined = DELIMITER.join(_escape(field) for field in fields)
    return urlsafe_b64encode_unpadded(joined)


def decode(value: str) -> ResumptionToken:
    """Invert :func:`encode`.

    :raises ResumptionTokenDecodeError: if ``value`` could not have been
        produced by :func:`encode`.
    """
    if not value or not _TOKEN_ALPHABET.fullmatch(value):
        raise ResumptionTokenDecodeError("Token is not valid base64url.")
    try:
        joined = urlsafe_b64decode_unpadded(value)
    except (binascii.Error, UnicodeDecodeError) as e:
        raise ResumptionTokenDecodeError("Token is not valid base64url.") from e

    segments = joined.split(DELIMITER)
    if len(segments) != FIELD_COUNT:
        raise ResumptionTokenDecodeError(
            f"Token has {len(segments)} fields, expected {FIELD_COUNT}."
        )

    try:
        verb, metadata_prefix, from_, until, set_spec, offset = (
            unquote_plus(segment, errors="strict") for segment in segments
        )
    except UnicodeDecodeError as e:
        raise ResumptionTokenDecodeError("Token field is not valid UTF-8.") from e
    if not _OFFSET.fullmatch(offset):
        raise ResumptionTokenDecodeError(f"Token offset {offset!r} is not an integer.")

    return ResumptionToken(
        verb=verb,
        metadata_prefix=metadata_prefix,
        from_=from_,
        until=until,
        set_spec=set_spec,
        offset=int(offset),
    )
