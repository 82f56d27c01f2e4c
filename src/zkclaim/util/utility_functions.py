"""Utility functions."""

import math

from zksnake.constant import BN254_SCALAR_FIELD

# Number of leading hash bits kept when a hash is turned into a field element
FIELD_ELEMENT_BITS = 254


def bytes_to_bits(data: bytes) -> list[int]:
    """Convert bytes to a big-endian bit list, most significant bit of each byte first.

    Example:
        >>> bytes_to_bits(bytes.fromhex("a1"))
        [1, 0, 1, 0, 0, 0, 0, 1]
    """
    return [(byte >> (7 - i)) & 1 for byte in data for i in range(8)]


def bits_to_bytes(bits: list[int]) -> bytes:
    """Convert a big-endian bit list back to bytes.

    Example:
        >>> bits_to_bytes([1, 0, 1, 0, 0, 0, 0, 1])
        b'\\xa1'
    """
    if len(bits) % 8 != 0:
        msg = f"The number of bits must be a multiple of 8: {len(bits)}"
        raise ValueError(msg)
    return bytes(bits_to_int(bits[i : i + 8]) for i in range(0, len(bits), 8))


def bits_to_int(bits: list[int]) -> int:
    """Interpret a big-endian bit list as an unsigned integer.

    Example:
        >>> bits_to_int([1, 0, 1])
        5
    """
    out = 0
    for bit in bits:
        out = (out << 1) | bit
    return out


def int_to_bits(n: int, n_bits: int) -> list[int]:
    """Return the `n_bits`-bit big-endian representation of `n`.

    Example:
        >>> int_to_bits(5, 4)
        [0, 1, 0, 1]
    """
    if n < 0 or n >= 1 << n_bits:
        msg = f"{n} does not fit in {n_bits} bits"
        raise ValueError(msg)
    return [(n >> (n_bits - 1 - i)) & 1 for i in range(n_bits)]


def bits_to_field_element(bits: list[int], n_bits: int = FIELD_ELEMENT_BITS) -> int:
    """Interpret the leading `n_bits` bits of a big-endian bit list as a field element."""
    return bits_to_int(bits[:n_bits]) % BN254_SCALAR_FIELD


def hash_to_field_element(digest: bytes) -> int:
    """Turn a 32-byte digest into a field element by keeping its leading 254 bits."""
    return bits_to_field_element(bytes_to_bits(digest))


def sha256_pad(data: bytes) -> bytes:
    """Apply SHA-256 padding to `data`.

    The padding is the byte `0x80`, the minimal number of zero bytes, and the bit length of `data`
    as a big-endian 64-bit integer, so that the result is a multiple of 64 bytes.
    """
    n_zeros = (55 - len(data)) % 64
    return data + b"\x80" + b"\x00" * n_zeros + (8 * len(data)).to_bytes(8, "big")


def number_of_blocks(data_length: int) -> int:
    """Return the number of 512-bit blocks of a SHA-256 padded message of `data_length` bytes."""
    return math.ceil((data_length + 9) / 64)


def pad_for_circuit(data: bytes, max_padded_bytes: int) -> tuple[list[int], int]:
    """Pad `data` with SHA-256 padding, then with zeros up to `max_padded_bytes`.

    Args:
        data (bytes): The message, e.g. a raw transaction without witness data.
        max_padded_bytes (int): Size of the padded message expected by the circuit.

    Returns:
        The padded message as a big-endian bit list and the number of 512-bit blocks
        holding the padded message.

    Raises:
        ValueError: If the padded message does not fit in `max_padded_bytes`.
    """
    padded = sha256_pad(data)
    if len(padded) > max_padded_bytes:
        msg = f"Padded message of {len(padded)} bytes exceeds the maximum of {max_padded_bytes} bytes"
        raise ValueError(msg)
    return bytes_to_bits(padded + b"\x00" * (max_padded_bytes - len(padded))), len(padded) // 64
