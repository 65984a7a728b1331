"""
Ledger address utilities: validation and script hash resolution.

Addresses are Base58Check encoded:
    version_byte (1) + script_hash (20, little-endian) + checksum (4)

The checksum is the first 4 bytes of SHA-256(SHA-256(version + script_hash)).

Version bytes:
  - 0x35 = N3 addresses (start with "N")
  - 0x17 = legacy addresses (start with "A")
"""

from __future__ import annotations

import hashlib

# Base58 alphabet (same as Bitcoin)
_ALPHABET = b"123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"
_ALPHABET_MAP = {char: i for i, char in enumerate(_ALPHABET)}

ADDRESS_VERSIONS = (0x35, 0x17)
_RAW_LENGTH = 25


class AddressError(ValueError):
    """Raised for invalid ledger addresses."""

    pass


def validate_address(address: str) -> bool:
    """
    Validate an address (length, checksum and version byte).

    Returns:
        True if valid

    Raises:
        AddressError: if the address is malformed or has a bad checksum
    """
    try:
        raw = _base58_decode(address)
    except (KeyError, UnicodeEncodeError) as e:
        raise AddressError(f"Invalid Base58 encoding: {e}") from None

    if len(raw) != _RAW_LENGTH:
        raise AddressError(f"Address has {len(raw)} bytes, expected {_RAW_LENGTH}")

    content = raw[:-4]
    checksum = raw[-4:]
    expected = _double_sha256(content)[:4]
    if checksum != expected:
        raise AddressError(
            f"Checksum mismatch: got {checksum.hex()}, expected {expected.hex()}"
        )

    if raw[0] not in ADDRESS_VERSIONS:
        raise AddressError(f"Unknown address version: 0x{raw[0]:02x}")

    return True


def is_valid_address(address: str) -> bool:
    """Check if an address is valid without raising exceptions."""
    try:
        return validate_address(address)
    except AddressError:
        return False


def address_to_script_hash(address: str) -> str:
    """
    Return the script hash of an address as big-endian hex (no 0x prefix),
    the form expected by Hash160 invocation arguments.

    Raises:
        AddressError: if the address is invalid
    """
    validate_address(address)
    raw = _base58_decode(address)
    return raw[1:21][::-1].hex()


def script_hash_to_address(script_hash: str, version: int = 0x35) -> str:
    """Encode a big-endian hex script hash (with or without 0x) as an address."""
    hex_value = script_hash[2:] if script_hash.startswith("0x") else script_hash
    body = bytes.fromhex(hex_value)
    if len(body) != 20:
        raise AddressError(f"Script hash must be 20 bytes, got {len(body)}")
    content = bytes([version]) + body[::-1]
    return _base58_encode(content + _double_sha256(content)[:4])


# ------------------------------------------------------------------
# Internal helpers
# ------------------------------------------------------------------


def _double_sha256(data: bytes) -> bytes:
    return hashlib.sha256(hashlib.sha256(data).digest()).digest()


def _base58_decode(s: str) -> bytes:
    """Decode a Base58-encoded string to bytes."""
    n = 0
    for char in s.encode("ascii"):
        n = n * 58 + _ALPHABET_MAP[char]

    if n == 0:
        result = b""
    else:
        byte_length = (n.bit_length() + 7) // 8
        result = n.to_bytes(byte_length, "big")

    # Each leading '1' in Base58 is a 0x00 byte
    pad_size = 0
    for char in s.encode("ascii"):
        if char == _ALPHABET[0]:
            pad_size += 1
        else:
            break

    return b"\x00" * pad_size + result


def _base58_encode(data: bytes) -> str:
    """Encode bytes to a Base58 string."""
    n = int.from_bytes(data, "big")
    result = []
    while n > 0:
        n, remainder = divmod(n, 58)
        result.append(_ALPHABET[remainder:remainder + 1])
    result.reverse()

    pad_size = 0
    for byte in data:
        if byte == 0:
            pad_size += 1
        else:
            break

    return (b"1" * pad_size + b"".join(result)).decode("ascii")
