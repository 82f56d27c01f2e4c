"""Parsing of raw Bitcoin transactions.

Offsets are byte offsets into the transaction serialised without witness data, the form that is
hashed into the transaction id.
"""

import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)

OP_RETURN = 0x6A
PUSH_32 = 0x20


@dataclass(frozen=True)
class TransactionOutput:
    """An output of a raw transaction.

    Attributes:
        offset (int): Byte offset of the amount field.
        amount (int): Amount in satoshis.
        script (bytes): The locking script.
        script_offset (int): Byte offset of the first byte of the script.
    """

    offset: int
    amount: int
    script: bytes
    script_offset: int


def read_varint(data: bytes, offset: int) -> tuple[int, int]:
    """Read a Bitcoin variable-length integer.

    Args:
        data (bytes): The serialised data.
        offset (int): Offset of the varint.

    Returns:
        The value and the offset of the first byte after the varint.

    Example:
        >>> read_varint(bytes.fromhex("fd0302"), 0)
        (515, 3)
    """
    if offset >= len(data):
        msg = f"Cannot read a varint at offset {offset} of {len(data)} bytes"
        raise ValueError(msg)
    prefix = data[offset]
    match prefix:
        case 0xFD:
            size = 2
        case 0xFE:
            size = 4
        case 0xFF:
            size = 8
        case _:
            return prefix, offset + 1
    if offset + 1 + size > len(data):
        msg = f"Truncated varint at offset {offset}"
        raise ValueError(msg)
    return int.from_bytes(data[offset + 1 : offset + 1 + size], "little"), offset + 1 + size


def is_segwit(raw_tx: bytes) -> bool:
    """Return `True` if `raw_tx` uses the SegWit serialisation (marker `0x00`, flag `0x01`)."""
    return len(raw_tx) > 6 and raw_tx[4] == 0x00 and raw_tx[5] == 0x01


def _skip_inputs_and_outputs(raw_tx: bytes, offset: int) -> tuple[int, int]:
    """Return the number of inputs and the offset after the outputs, starting at the input count."""
    n_inputs, offset = read_varint(raw_tx, offset)
    for _ in range(n_inputs):
        offset += 36
        script_length, offset = read_varint(raw_tx, offset)
        offset += script_length + 4
    n_outputs, offset = read_varint(raw_tx, offset)
    for _ in range(n_outputs):
        offset += 8
        script_length, offset = read_varint(raw_tx, offset)
        offset += script_length
    if offset > len(raw_tx):
        msg = "Truncated transaction"
        raise ValueError(msg)
    return n_inputs, offset


def strip_witness_data(raw_tx: bytes) -> bytes:
    """Return the transaction without SegWit marker, flag and witnesses.

    Non-SegWit transactions are returned unchanged.
    """
    if not is_segwit(raw_tx):
        return raw_tx
    n_inputs, end_of_outputs = _skip_inputs_and_outputs(raw_tx, 6)
    offset = end_of_outputs
    for _ in range(n_inputs):
        n_items, offset = read_varint(raw_tx, offset)
        for _ in range(n_items):
            item_length, offset = read_varint(raw_tx, offset)
            offset += item_length
    if offset + 4 != len(raw_tx):
        msg = f"Unexpected data after the witnesses: expected {offset + 4} bytes, got {len(raw_tx)}"
        raise ValueError(msg)
    stripped = raw_tx[:4] + raw_tx[6:end_of_outputs] + raw_tx[-4:]
    logger.debug("Stripped witness data: %d -> %d bytes", len(raw_tx), len(stripped))
    return stripped


def parse_outputs(raw_tx: bytes) -> list[TransactionOutput]:
    """Return the outputs of a transaction serialised without witness data."""
    if is_segwit(raw_tx):
        msg = "Strip the witness data before parsing the outputs"
        raise ValueError(msg)
    n_inputs, offset = read_varint(raw_tx, 4)
    for _ in range(n_inputs):
        offset += 36
        script_length, offset = read_varint(raw_tx, offset)
        offset += script_length + 4

    n_outputs, offset = read_varint(raw_tx, offset)
    outputs = []
    for _ in range(n_outputs):
        output_offset = offset
        amount = int.from_bytes(raw_tx[offset : offset + 8], "little")
        script_length, script_offset = read_varint(raw_tx, offset + 8)
        offset = script_offset + script_length
        if offset > len(raw_tx):
            msg = "Truncated transaction output"
            raise ValueError(msg)
        outputs.append(TransactionOutput(output_offset, amount, raw_tx[script_offset:offset], script_offset))
    return outputs


def find_output_offset(raw_tx: bytes, script: bytes, amount: int | None = None) -> int:
    """Return the byte offset of the first output paying to `script`.

    Args:
        raw_tx (bytes): Transaction without witness data.
        script (bytes): The locking script.
        amount (int | None): If given, the output must also pay exactly `amount` satoshis.

    Raises:
        ValueError: If no output matches, or the script length is not a single-byte varint.
    """
    for output in parse_outputs(raw_tx):
        if output.script == script and (amount is None or output.amount == amount):
            if output.script_offset != output.offset + 9:
                msg = f"The script length of the output at offset {output.offset} is not a single-byte varint"
                raise ValueError(msg)
            return output.offset
    msg = f"No output pays to {script.hex()}" + (f" with amount {amount}" if amount is not None else "")
    raise ValueError(msg)


def find_commitment_offset(raw_tx: bytes, commitment: bytes) -> int:
    """Return the byte offset of `commitment` inside an `OP_RETURN <32 bytes>` output.

    Raises:
        ValueError: If no output carries the commitment.
    """
    expected_script = bytes([OP_RETURN, PUSH_32]) + commitment
    for output in parse_outputs(raw_tx):
        if output.script == expected_script:
            return output.script_offset + 2
    msg = f"No OP_RETURN output carries the commitment {commitment.hex()}"
    raise ValueError(msg)
