"""Compiler metadata found in the CBOR trailer at the end of contract bytecode."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

import cbor2

_BASE58_ALPHABET = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"


@dataclass(frozen=True)
class SolcVersion:
    major: int
    minor: int
    patch: int

    def __str__(self) -> str:
        return f"Solc {self.major}.{self.minor}.{self.patch}"


@dataclass(frozen=True)
class IpfsHash:
    hash: str

    def __str__(self) -> str:
        return f"IPFS {self.hash}"


@dataclass(frozen=True)
class SwarmHash:
    version: int
    hash: str

    def __str__(self) -> str:
        label = "BZZR0" if self.version == 0 else "BZZR1"
        return f"{label} {self.hash}"


@dataclass(frozen=True)
class UnknownMetadata:
    name: str
    value: bytes

    def __str__(self) -> str:
        return f"{self.name}: {self.value.hex()}"


Metadata = Union[SolcVersion, IpfsHash, SwarmHash, UnknownMetadata]


def base58_encode(data: bytes) -> str:
    """Encode bytes with the Bitcoin base58 alphabet."""
    number = int.from_bytes(data, "big")
    digits = []
    while number:
        number, remainder = divmod(number, 58)
        digits.append(_BASE58_ALPHABET[remainder])
    leading_zeros = len(data) - len(data.lstrip(b"\x00"))
    return "1" * leading_zeros + "".join(reversed(digits))


def get_metadata(source_code: str) -> list[Metadata]:
    """Decode the metadata entries appended to hex-encoded bytecode."""
    code = bytes.fromhex(source_code)
    metadata_bytes = _metadata_bytes(code)
    if not metadata_bytes:
        return []
    return _decode_metadata(metadata_bytes)


def _metadata_bytes(code: bytes) -> bytes:
    if len(code) < 2:
        raise ValueError("bytecode is too short to hold a metadata length")
    size = code[-1] + code[-2]
    end = len(code) - 2
    if size > end:
        return b""
    return code[end - size:end]


def _decode_metadata(encoded: bytes) -> list[Metadata]:
    try:
        decoded = cbor2.loads(encoded)
    except (cbor2.CBORDecodeError, ValueError, EOFError):
        return []
    if not isinstance(decoded, dict):
        return []
    if not all(isinstance(k, str) and isinstance(v, bytes) for k, v in decoded.items()):
        return []
    return [_decode_entry(key, value) for key, value in decoded.items()]


def _decode_entry(key: str, value: bytes) -> Metadata:
    if key == "solc":
        if len(value) < 3:
            raise ValueError("solc version needs three bytes")
        return SolcVersion(value[0], value[1], value[2])
    if key == "ipfs":
        return IpfsHash(base58_encode(value))
    if key == "bzzr0":
        return SwarmHash(0, value.hex())
    if key == "bzzr1":
        return SwarmHash(1, value.hex())
    return UnknownMetadata(key, value)