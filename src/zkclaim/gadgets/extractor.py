from typing import Union

from src.zkclaim.constraint_system.constraint_system import ConstraintSystem
from src.zkclaim.constraint_system.linear_combination import LinearCombination
from src.zkclaim.gadgets.bits import bits_to_num, num_to_bits
from src.zkclaim.gadgets.selector import BitSelector, weighted_sum


class ByteOffsetExtractor:
    """Read a fixed number of bytes at a private byte offset of a bit array.

    The selector only ranges over the valid start positions `[0, max_bytes - extract_bytes]`, so
    a read past the end of the source cannot be satisfied. Selection is done per byte: every
    source byte is packed into a single linear combination, the selected byte is obtained as a
    weighted sum and then decomposed back into 8 proven bits.

    Attributes:
        max_bytes (int): Length in bytes of the source bit array.
        extract_bytes (int): Number of bytes read.
        selector (BitSelector): Selector over the valid offsets.
    """

    def __init__(self, max_bytes: int, extract_bytes: int):
        if not 0 < extract_bytes <= max_bytes:
            msg = f"Cannot extract {extract_bytes} bytes from {max_bytes} bytes"
            raise ValueError(msg)
        self.max_bytes = max_bytes
        self.extract_bytes = extract_bytes
        self.selector = BitSelector(max_bytes - extract_bytes + 1)

    def extract(
        self,
        cs: ConstraintSystem,
        source_bits: list[LinearCombination],
        offset: Union[LinearCombination, int],
        label: str = "extracted bytes",
    ) -> list[LinearCombination]:
        """Return the `extract_bytes * 8` bits starting at byte `offset` of `source_bits`.

        Args:
            cs (ConstraintSystem): The constraint system.
            source_bits (list[LinearCombination]): Big-endian bit array of `max_bytes` bytes. The
                bits must be proven binary by the caller.
            offset (LinearCombination | int): Byte offset of the first extracted byte.
            label (str): Name of the extracted field, used in constraint labels.

        Returns:
            The extracted big-endian bit array.
        """
        if len(source_bits) != 8 * self.max_bytes:
            msg = f"The source must have {8 * self.max_bytes} bits: length: {len(source_bits)}"
            raise ValueError(msg)

        indicators = self.selector.select(cs, offset, f"offset: {label} out of range")
        source_bytes = [bits_to_num(source_bits[8 * k : 8 * k + 8]) for k in range(self.max_bytes)]

        out = []
        for j in range(self.extract_bytes):
            byte = weighted_sum(cs, indicators, source_bytes[j : j + self.selector.size])
            out.extend(reversed(num_to_bits(cs, byte, 8, f"range: {label} byte {j}")))
        return out
