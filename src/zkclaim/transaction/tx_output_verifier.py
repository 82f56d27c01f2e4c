from src.zkclaim.constraint_system.constraint_system import ConstraintSystem
from src.zkclaim.constraint_system.linear_combination import ZERO, LinearCombination, linear_sum
from src.zkclaim.gadgets.bits import bits_to_num, is_equal, le_bytes_to_num
from src.zkclaim.gadgets.comparator import BitArrayComparator
from src.zkclaim.gadgets.extractor import ByteOffsetExtractor
from src.zkclaim.gadgets.selector import BitSelector, prefix_mask

# Lengths of P2WPKH, P2SH, P2PKH and P2WSH/P2TR locking scripts
SUPPORTED_SCRIPT_LENGTHS = (22, 23, 25, 34)

# Satoshi amount (8 bytes) followed by the single-byte script length
VALUE_BYTES = 8
SCRIPT_OFFSET = VALUE_BYTES + 1


class TxOutputVerifier:
    """Check that a transaction output pays a given amount to a given locking script.

    The output is serialised as `amount (8 bytes, little-endian) || script length (1 byte) ||
    script`. The script length is assumed to fit in a single-byte varint, which holds for every
    supported standard script.

    Attributes:
        max_tx_bytes (int): Length in bytes of the transaction bit array.
        max_script_bytes (int): Length in bytes of the expected script array.
        supported_script_lengths (tuple[int, ...]): Allowed script lengths.
    """

    def __init__(
        self,
        max_tx_bytes: int,
        max_script_bits: int,
        supported_script_lengths: tuple[int, ...] = SUPPORTED_SCRIPT_LENGTHS,
    ):
        """Initialise the verifier.

        Args:
            max_tx_bytes (int): Length in bytes of the transaction bit array (in the claim
                circuit, the padded transaction).
            max_script_bits (int): Length in bits of the zero-padded expected script.
            supported_script_lengths (tuple[int, ...]): Allowed script lengths in bytes.

        Raises:
            ValueError: If `max_script_bits` is not a whole number of bytes, or a supported length
                does not fit in the script array or in a single-byte varint.
        """
        if max_script_bits % 8 != 0:
            msg = f"The script must be a whole number of bytes: max_script_bits: {max_script_bits}"
            raise ValueError(msg)
        self.max_tx_bytes = max_tx_bytes
        self.max_script_bytes = max_script_bits // 8
        self.supported_script_lengths = tuple(supported_script_lengths)
        if not self.supported_script_lengths or any(
            not 0 < length <= min(self.max_script_bytes, 0xFC) for length in self.supported_script_lengths
        ):
            msg = f"Unsupported script lengths {self.supported_script_lengths} for {self.max_script_bytes} bytes"
            raise ValueError(msg)

        self.header_extractor = ByteOffsetExtractor(max_tx_bytes, SCRIPT_OFFSET)
        self.script_extractor = ByteOffsetExtractor(max_tx_bytes, self.max_script_bytes)
        self.length_selector = BitSelector(self.max_script_bytes + 1)
        self.comparator = BitArrayComparator(max_script_bits)

    def verify(
        self,
        cs: ConstraintSystem,
        tx_bits: list[LinearCombination],
        output_offset: LinearCombination | int,
        amount: LinearCombination | int,
        script_bits: list[LinearCombination],
        script_length: LinearCombination | int,
    ) -> LinearCombination:
        """Return a bit equal to 1 if and only if the output at `output_offset` matches.

        Args:
            cs (ConstraintSystem): The constraint system.
            tx_bits (list[LinearCombination]): The proven bits of the transaction.
            output_offset (LinearCombination | int): Byte offset of the output's amount field.
            amount (LinearCombination | int): Expected amount in satoshis.
            script_bits (list[LinearCombination]): Expected script, proven bits, zero beyond
                `script_length` bytes.
            script_length (LinearCombination | int): Length of the expected script in bytes.

        Returns:
            `value_match * script_match`, where `script_match` covers the length byte and the
            first `script_length` bytes of the script.

        Notes:
            `script_length` is constrained to the supported lengths and the expected script to be
            zero beyond it: violations make the system unsatisfiable rather than returning 0.
        """
        if len(script_bits) != 8 * self.max_script_bytes:
            msg = f"The expected script must have {8 * self.max_script_bytes} bits: length: {len(script_bits)}"
            raise ValueError(msg)

        length_indicators = self.length_selector.select(cs, script_length, "range: script length")
        cs.assert_equal(
            linear_sum(length_indicators[length] for length in self.supported_script_lengths),
            1,
            "range: script length is not a supported standard length",
        )
        byte_mask = prefix_mask(self.length_selector, length_indicators, self.max_script_bytes)
        for k, used in enumerate(byte_mask):
            cs.enforce(
                1 - used,
                linear_sum(script_bits[8 * k : 8 * k + 8]),
                ZERO,
                f"mismatch: expected script byte {k} beyond the script length is not zero",
            )

        header = self.header_extractor.extract(cs, tx_bits, output_offset, "output header")
        value_match = is_equal(cs, le_bytes_to_num(header[: 8 * VALUE_BYTES]), amount, "output value")
        length_match = is_equal(cs, bits_to_num(header[8 * VALUE_BYTES :]), script_length, "output script length")

        script = self.script_extractor.extract(cs, tx_bits, output_offset + SCRIPT_OFFSET, "output script")
        bit_mask = [used for used in byte_mask for _ in range(8)]
        prefix_match = self.comparator.compare(cs, script, script_bits, bit_mask, "output script")

        script_match = cs.mul(length_match, prefix_match)
        return cs.mul(value_match, script_match)
