from src.zkclaim.constraint_system.constraint_system import ConstraintSystem
from src.zkclaim.constraint_system.linear_combination import LinearCombination, linear_sum
from src.zkclaim.gadgets.bits import is_zero, xor


class BitArrayComparator:
    """Compare two bit arrays, optionally on the positions of a mask only.

    The comparison counts the differing positions, `sum_k m_k * (a_k ^ b_k)`, and returns whether
    that count is zero. The count is at most `n_bits`, far below the field modulus, so it cannot
    wrap around to zero.
    """

    def __init__(self, n_bits: int):
        if n_bits < 1:
            msg = f"Cannot compare arrays of {n_bits} bits"
            raise ValueError(msg)
        self.n_bits = n_bits

    def compare(
        self,
        cs: ConstraintSystem,
        a: list[LinearCombination],
        b: list[LinearCombination],
        mask: list[LinearCombination] | None = None,
        label: str = "comparison",
    ) -> LinearCombination:
        """Return a bit equal to 1 if and only if `a` and `b` agree wherever `mask` is 1.

        Args:
            cs (ConstraintSystem): The constraint system.
            a (list[LinearCombination]): First array of `n_bits` proven bits.
            b (list[LinearCombination]): Second array of `n_bits` proven bits.
            mask (list[LinearCombination] | None): Array of `n_bits` bits, `None` to compare
                every position.
            label (str): Label of the constraints.

        Returns:
            The comparison bit.
        """
        if len(a) != self.n_bits or len(b) != self.n_bits:
            msg = f"The arrays must have {self.n_bits} bits: lengths: {len(a)}, {len(b)}"
            raise ValueError(msg)
        if mask is not None and len(mask) != self.n_bits:
            msg = f"The mask must have {self.n_bits} bits: length: {len(mask)}"
            raise ValueError(msg)

        differences = [xor(cs, x, y) for x, y in zip(a, b)]
        if mask is not None:
            differences = [cs.mul(m, d) for m, d in zip(mask, differences)]
        return is_zero(cs, linear_sum(differences), label)
