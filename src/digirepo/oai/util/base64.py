from __future__ import annotations

import base64 as stdlib_base64
import binascii
from collections.abc import Callable
from functools import wraps
from typing import Concatenate, ParamSpec, TypeVar

P = ParamSpec("P")
T = TypeVar("T")


_ENCODING = "utf8"


def _ensure_bytes(s: str | bytes, encoding: str) -> bytes:
    if isinstance(s, bytes):
        return s
    return s.encode(encoding)


def _ensure_string(s: str | bytes, encoding: str) -> str:
    if isinstance(s, bytes):
        return s.decode(encoding)
    return s


def _wrap_func_bytes_string(
    func: Callable[Concatenate[bytes, P], bytes | str], encoding: str
) -> Callable[Concatenate[str | bytes, P], str]:
    """
    Wrap a function, ensuring that the first input parameter is
    a bytes object, encoding it if necessary and that the returned
    object is a string, decoding if necessary.
    """

    @wraps(func)
    def wrapped(s: str | bytes, /, *args: P.args, **kwargs: P.kwargs) -> str:
        s = _ensure_bytes(s, encoding)
        value = func(s, *args, **kwargs)
        return _ensure_string(value, encoding)

    return wrapped


urlsafe_b64encode = _wrap_func_bytes_string(stdlib_base64.urlsafe_b64encode, _ENCODING)
urlsafe_b64decode = _wrap_func_bytes_string(stdlib_base64.urlsafe_b64decode, _ENCODING)


def urlsafe_b64encode_unpadded(s: str | bytes) -> str:
    """Base64url-encode `s`, dropping the trailing '=' padding so the
    result can be used in a URL query parameter without further escaping.
    """
    return urlsafe_b64encode(s).rstrip("=")


def urlsafe_b64decode_unpadded(s: str | bytes) -> str:
    """Inverse of `urlsafe_b64encode_unpadded`. Padding is optional.

    :raise binascii.Error: If `s` is not valid base64url.
    :raise UnicodeDecodeError: If the decoded bytes are not UTF-8.
    """
    text = _ensure_string(s, _ENCODING).rstrip("=")
    if len(text) % 4 == 1:
        raise binascii.Error(f"Invalid base64url length: {len(text)}")
    return urlsafe_b64decode(text + "=" * (-len(text) % 4))
