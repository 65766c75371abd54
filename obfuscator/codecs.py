"""
Text and binary codecs used by the token format.

String encodings turn user text into bytes before encryption. Binary
encodings turn IVs and ciphertext into `:`-free text for the token.
"""

import base64
import binascii

from .exceptions import UnknownEncodingError

STRING_ENCODINGS = {
    "utf8": "utf-8",
    "utf-8": "utf-8",
    "ascii": "ascii",
    "latin1": "latin-1",
    "binary": "latin-1",
    "utf16le": "utf-16-le",
    "utf-16le": "utf-16-le",
    "ucs2": "utf-16-le",
    "ucs-2": "utf-16-le",
}

BINARY_ENCODINGS = ("base64", "base64url", "hex")


def _python_codec(encoding: str) -> str:
    codec = STRING_ENCODINGS.get((encoding or "").lower())
    if codec is None:
        raise UnknownEncodingError(encoding)
    return codec


def string_to_bytes(value: str, encoding: str) -> bytes:
    return value.encode(_python_codec(encoding))


def bytes_to_string(data: bytes, encoding: str) -> str:
    return data.decode(_python_codec(encoding))


def encode_binary(data: bytes, encoding: str) -> str:
    """Encode bytes as text using a binary-safe encoding."""
    if encoding == "base64":
        return base64.b64encode(data).decode("ascii")
    if encoding == "base64url":
        return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")
    if encoding == "hex":
        return data.hex()
    raise UnknownEncodingError(encoding)


def decode_binary(text: str, encoding: str) -> bytes:
    """
    Decode text produced by `encode_binary`.

    Raises:
        ValueError: If the text is not valid for the encoding
    """
    try:
        if encoding == "base64":
            return base64.b64decode(text, validate=True)
        if encoding == "base64url":
            # Padding is stripped on encode
            return base64.urlsafe_b64decode(text + "=" * (-len(text) % 4))
        if encoding == "hex":
            return bytes.fromhex(text)
    except binascii.Error as e:
        raise ValueError(f"Invalid {encoding} data: {e}") from e
    raise UnknownEncodingError(encoding)
