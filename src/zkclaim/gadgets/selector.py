"""One-hot selection of a value among a fixed set of candidates."""

from typing import Union

from src.zkclaim.constraint_system.constraint_system import ConstraintSystem
from src.zkclaim.constraint_system.linear_combination import ONE, LinearCombination, linear_sum
from src.zkclaim.gadgets.bits import is_equal


class BitSelector:
    """Turn a private index into a one-hot vector of indicator bits.

    A circuit cannot index an array with a wire. `BitSelector` replaces `array[index]` by the
    weighted sum `sum_i s_i * array[i]`, where `s_i = (index == start + i)` and the indicators
    are constrained to sum to exactly 1. An index outside `[start, start + size)` leaves every
    indicator at 0 and makes the sum constraint unsatisfiable.

    Attributes:
        size (int): Number of candidates.
        start (int): Index value selecting the first candidate.
    """

    def __init__(self, size: int, start: int = 0):
        if size < 1:
            msg = f"A selector needs at least one candidate: size: {size}"
            raise ValueError(msg)
        self.size = size
        self.start = start

    def select(
        self, cs: ConstraintSystem, index: Union[LinearCombination, int], label: str = "range: selector index"
    ) -> list[LinearCombination]:
        """Return the indicator bits of `index`.

        Args:
            cs (ConstraintSystem): The constraint system.
            index (LinearCombination | int): The index to select.
            label (str): Label of the constraint forcing the index into range.

        Returns:
            The list of `size` indicator bits, exactly one of which is 1.
        """
        indicators = [is_equal(cs, index, self.start + i, f"{label}: indicator {i}") for i in range(self.size)]
        cs.assert_equal(linear_sum(indicators), ONE, label)
        return indicators


def weighted_sum(
    cs: ConstraintSystem, indicators: list[LinearCombination], values: list[Union[LinearCombination, int]]
) -> LinearCombination:
    """Return `sum_i indicators[i] * values[i]`, the value at the selected position."""
    if len(indicators) != len(values):
        msg = f"Got {len(values)} values for {len(indicators)} indicators"
        raise ValueError(msg)
    return linear_sum(cs.mul(indicator, value) for indicator, value in zip(indicators, values))


def select_bits(
    cs: ConstraintSystem, indicators: list[LinearCombination], bit_arrays: list[list[LinearCombination]]
) -> list[LinearCombination]:
    """Select one of several bit arrays of the same length, bit by bit."""
    if len(indicators) != len(bit_arrays):
        msg = f"Got {len(bit_arrays)} bit arrays for {len(indicators)} indicators"
        raise ValueError(msg)
    lengths = {len(bits) for bits in bit_arrays}
    if len(lengths) != 1:
        msg = f"Bit arrays must have the same length: {sorted(lengths)}"
        raise ValueError(msg)
    return [weighted_sum(cs, indicators, list(column)) for column in zip(*bit_arrays)]


def prefix_mask(selector: BitSelector, indicators: list[LinearCombination], length: int) -> list[LinearCombination]:
    """Return the bits `m_k = (k < index)` for `k` in `[0, length)`.

    The mask is linear in the indicators: `m_k = sum_{i : start + i > k} s_i`.

    Example:
        With `start = 0`, `length = 4` and `index = 2`, the mask is `[1, 1, 0, 0]`.
    """
    return [
        linear_sum(indicator for i, indicator in enumerate(indicators) if selector.start + i > k)
        for k in range(length)
    ]
