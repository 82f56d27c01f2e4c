import logging

from src.zkclaim.constraint_system.constraint_system import ConstraintSystem
from src.zkclaim.constraint_system.linear_combination import ONE, LinearCombination, linear_sum
from src.zkclaim.gadgets.selector import BitSelector, prefix_mask, select_bits
from src.zkclaim.hashing.sha256 import BLOCK_BITS, compress, initial_state, sha256

logger = logging.getLogger(__name__)


class VariableLengthDoubleHasher:
    """Double SHA-256 of a message whose length is only known to the prover.

    The message is given already padded, as `max_blocks` blocks of which only the first
    `num_blocks` hold the padded message. All `max_blocks` compressions are computed, the
    intermediate digest after exactly `num_blocks` blocks is picked with a one-hot selector and
    hashed a second time as a fixed 256-bit message.

    Every block after the first `num_blocks` must be zero, so no data can hide in the unhashed tail.

    Attributes:
        max_blocks (int): Maximum number of 512-bit blocks.
        selector (BitSelector): Selector over the block counts `[1, max_blocks]`.
    """

    def __init__(self, max_blocks: int):
        self.max_blocks = max_blocks
        self.selector = BitSelector(max_blocks, start=1)

    def hash(
        self,
        cs: ConstraintSystem,
        padded_bits: list[LinearCombination],
        num_blocks: LinearCombination | int,
        label: str = "double sha256",
    ) -> list[LinearCombination]:
        """Return the double SHA-256 digest of the first `num_blocks` blocks of `padded_bits`.

        Args:
            cs (ConstraintSystem): The constraint system.
            padded_bits (list[LinearCombination]): `max_blocks * 512` proven bits: the SHA-256
                padded message followed by zeros.
            num_blocks (LinearCombination | int): Number of blocks holding the padded message.
            label (str): Name of the hashed message, used in constraint labels.

        Returns:
            The 256-bit digest, big-endian.
        """
        if len(padded_bits) != self.max_blocks * BLOCK_BITS:
            msg = f"The padded message must have {self.max_blocks * BLOCK_BITS} bits: length: {len(padded_bits)}"
            raise ValueError(msg)

        indicators = self.selector.select(cs, num_blocks, f"range: {label} block count")
        used = prefix_mask(self.selector, indicators, self.max_blocks)
        for i in range(1, self.max_blocks):
            block_weight = linear_sum(padded_bits[BLOCK_BITS * i : BLOCK_BITS * (i + 1)])
            cs.enforce(ONE - used[i], block_weight, 0, f"mismatch: {label} block {i} beyond the block count is not zero")

        state = initial_state()
        digests = []
        for i in range(self.max_blocks):
            state = compress(cs, state, padded_bits[BLOCK_BITS * i : BLOCK_BITS * (i + 1)])
            digests.append([bit for word in state for bit in word])

        first_digest = select_bits(cs, indicators, digests)
        logger.debug("%s: %d blocks hashed unconditionally", label, self.max_blocks)
        return sha256(cs, first_digest)
