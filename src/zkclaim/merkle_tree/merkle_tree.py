import logging

from src.zkclaim.constraint_system.constraint_system import ConstraintSystem
from src.zkclaim.constraint_system.linear_combination import ZERO, LinearCombination, linear_sum
from src.zkclaim.gadgets.bits import assert_bit, assert_bits, assert_bits_equal
from src.zkclaim.gadgets.selector import BitSelector, prefix_mask, select_bits
from src.zkclaim.hashing.sha256 import DIGEST_BITS, double_sha256

logger = logging.getLogger(__name__)


class MerkleLevelStep:
    """One level of a Bitcoin Merkle path."""

    @staticmethod
    def step(
        cs: ConstraintSystem,
        current: list[LinearCombination],
        sibling: list[LinearCombination],
        direction: LinearCombination,
        label: str = "merkle level",
    ) -> list[LinearCombination]:
        """Return the parent of `current` and `sibling`.

        If `direction` is 0 the current node is the left child, otherwise it is the right child.
        The children are ordered with the multiplexer identity
        `left = current + direction * (sibling - current)`, `right = current + sibling - left`,
        so both orders cost the same constraints.

        Args:
            cs (ConstraintSystem): The constraint system.
            current (list[LinearCombination]): The 256 bits of the current node.
            sibling (list[LinearCombination]): The 256 bits of its sibling.
            direction (LinearCombination): Position of the current node.
            label (str): Label of the level, used in constraint labels.

        Returns:
            The 256 bits of `double_sha256(left || right)`.
        """
        if len(current) != DIGEST_BITS or len(sibling) != DIGEST_BITS:
            msg = f"Merkle nodes must have {DIGEST_BITS} bits: lengths: {len(current)}, {len(sibling)}"
            raise ValueError(msg)
        assert_bit(cs, direction, f"bit: {label} direction")

        left = [c + cs.mul(direction, s - c) for c, s in zip(current, sibling)]
        right = [c + s - l for c, s, l in zip(current, sibling, left)]
        return double_sha256(cs, left + right)


class MerkleHiddenRootVerifier:
    """Merkle inclusion proof against one of several roots, without revealing which one.

    Every level of a tree of depth `max_depth` is computed whatever the declared depth, the node at
    the declared depth is picked with a one-hot selector and compared bit-for-bit with the
    candidate root picked by a second selector. The constraints are the same for every root index,
    so the witness shape does not tell which root was used.

    Attributes:
        max_depth (int): Maximum depth of the tree.
        num_roots (int): Number of candidate roots.
    """

    def __init__(self, max_depth: int, num_roots: int):
        if max_depth < 1 or num_roots < 1:
            msg = f"Invalid Merkle verifier sizes: max_depth: {max_depth}, num_roots: {num_roots}"
            raise ValueError(msg)
        self.max_depth = max_depth
        self.num_roots = num_roots
        self.depth_selector = BitSelector(max_depth, start=1)
        self.root_selector = BitSelector(num_roots)

    def verify(
        self,
        cs: ConstraintSystem,
        leaf: list[LinearCombination],
        siblings: list[list[LinearCombination]],
        directions: list[LinearCombination],
        depth: LinearCombination | int,
        root_index: LinearCombination | int,
        candidate_roots: list[list[LinearCombination]],
    ):
        """Constrain `leaf` to be included under `candidate_roots[root_index]`.

        Args:
            cs (ConstraintSystem): The constraint system.
            leaf (list[LinearCombination]): The 256 proven bits of the leaf.
            siblings (list[list[LinearCombination]]): `max_depth` siblings of 256 bits each, zero
                beyond `depth`.
            directions (list[LinearCombination]): `max_depth` direction bits, zero beyond `depth`.
            depth (LinearCombination | int): Depth of the tree, in `[1, max_depth]`.
            root_index (LinearCombination | int): Index of the root, in `[0, num_roots)`.
            candidate_roots (list[list[LinearCombination]]): `num_roots` roots of 256 bits each.
        """
        if len(siblings) != self.max_depth or len(directions) != self.max_depth:
            msg = f"Merkle proofs must have {self.max_depth} levels: lengths: {len(siblings)}, {len(directions)}"
            raise ValueError(msg)
        if len(candidate_roots) != self.num_roots:
            msg = f"Expected {self.num_roots} candidate roots: length: {len(candidate_roots)}"
            raise ValueError(msg)
        n_constraints = len(cs.constraints)

        for k, sibling in enumerate(siblings):
            if len(sibling) != DIGEST_BITS:
                msg = f"Merkle sibling {k} must have {DIGEST_BITS} bits: length: {len(sibling)}"
                raise ValueError(msg)
            assert_bits(cs, sibling, f"bit: merkle sibling {k}")
        for r, root in enumerate(candidate_roots):
            assert_bits(cs, root, f"bit: merkle root {r}")

        depth_indicators = self.depth_selector.select(cs, depth, "range: merkle depth")
        root_indicators = self.root_selector.select(cs, root_index, "range: merkle root index")

        current = leaf
        levels = []
        for k in range(self.max_depth):
            current = MerkleLevelStep.step(cs, current, siblings[k], directions[k], f"merkle level {k}")
            levels.append(current)

        computed_root = select_bits(cs, depth_indicators, levels)
        expected_root = select_bits(cs, root_indicators, candidate_roots)
        assert_bits_equal(cs, computed_root, expected_root, "mismatch: merkle root")

        used = prefix_mask(self.depth_selector, depth_indicators, self.max_depth)
        for k in range(self.max_depth):
            cs.enforce(
                1 - used[k],
                linear_sum(siblings[k]) + directions[k],
                ZERO,
                f"mismatch: merkle level {k} beyond the depth is not zero-filled",
            )

        logger.debug(
            "Merkle verifier of depth %d over %d roots: %d constraints",
            self.max_depth,
            self.num_roots,
            len(cs.constraints) - n_constraints,
        )
