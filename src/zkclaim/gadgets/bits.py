"""Bit-level gadgets.

Every function takes the `ConstraintSystem` the gadget is added to as first argument and returns
the linear combinations carrying its output. Bit arrays are big-endian lists of wires (most
significant bit of each byte first), unless stated otherwise.
"""

from typing import Union

from src.zkclaim.constraint_system.constraint_system import ConstraintSystem
from src.zkclaim.constraint_system.linear_combination import (
    MODULUS,
    ONE,
    ZERO,
    LinearCombination,
    lift,
    linear_sum,
)
from src.zkclaim.util.utility_functions import bytes_to_bits

# Largest number of bits whose weighted sum cannot wrap around the field
MAX_DECOMPOSITION_BITS = MODULUS.bit_length() - 1


def assert_bit(cs: ConstraintSystem, x: LinearCombination, label: str = "bit"):
    """Constrain `x * (x - 1) = 0`."""
    cs.enforce(x, x - 1, ZERO, label)


def assert_bits(cs: ConstraintSystem, bits: list[LinearCombination], label: str = "bit"):
    """Constrain every element of `bits` to be binary."""
    for i, bit in enumerate(bits):
        assert_bit(cs, bit, f"{label}[{i}]")


def xor(cs: ConstraintSystem, a: LinearCombination, b: LinearCombination) -> LinearCombination:
    """Return `a ^ b` for two bits, computed as `a + b - 2ab`."""
    return a + b - 2 * cs.mul(a, b)


def mux(
    cs: ConstraintSystem,
    selector: LinearCombination,
    when_zero: Union[LinearCombination, int],
    when_one: Union[LinearCombination, int],
) -> LinearCombination:
    """Return `when_one` if the bit `selector` is 1, `when_zero` otherwise."""
    when_zero = lift(when_zero)
    return when_zero + cs.mul(selector, lift(when_one) - when_zero)


def is_zero(cs: ConstraintSystem, x: Union[LinearCombination, int], label: str = "is_zero") -> LinearCombination:
    """Return a bit equal to 1 if and only if `x == 0`.

    The prover supplies `inverse = x^(-1)` (or 0 if `x == 0`). With `out = 1 - x * inverse`, the
    constraint `x * out = 0` forces `out = 0` whenever `x != 0`, while `x == 0` gives `out = 1`
    whatever `inverse` is.
    """
    x = lift(x)
    if x.is_constant():
        return ONE if x.constant_value() == 0 else ZERO

    inverse = cs.compute(lambda value: pow(value, -1, MODULUS) if value else 0, [x])
    out = ONE - cs.mul(x, inverse, f"{label}: inverse")
    cs.enforce(x, out, ZERO, label)
    return out


def is_equal(
    cs: ConstraintSystem,
    a: Union[LinearCombination, int],
    b: Union[LinearCombination, int],
    label: str = "is_equal",
) -> LinearCombination:
    """Return a bit equal to 1 if and only if `a == b`."""
    return is_zero(cs, lift(a) - lift(b), label)


def num_to_bits(
    cs: ConstraintSystem, x: Union[LinearCombination, int], n_bits: int, label: str = "range"
) -> list[LinearCombination]:
    """Decompose `x` into `n_bits` proven bits, least significant bit first.

    The decomposition is unsatisfiable if `x >= 2**n_bits`.

    Args:
        cs (ConstraintSystem): The constraint system.
        x (LinearCombination | int): The value to decompose.
        n_bits (int): Number of bits, at most `MAX_DECOMPOSITION_BITS`.
        label (str): Label of the recomposition constraint.

    Returns:
        The list of bits `[b_0, ..., b_{n_bits - 1}]` with `x = sum_i b_i * 2^i`.

    Raises:
        ValueError: If `n_bits` exceeds `MAX_DECOMPOSITION_BITS`.
    """
    if not 0 < n_bits <= MAX_DECOMPOSITION_BITS:
        msg = f"Cannot decompose into {n_bits} bits: the maximum is {MAX_DECOMPOSITION_BITS}"
        raise ValueError(msg)
    x = lift(x)
    if x.is_constant():
        value = x.constant_value()
        if value >= 1 << n_bits:
            msg = f"Constant {value} does not fit in {n_bits} bits: {label}"
            raise ValueError(msg)
        return [ONE if (value >> i) & 1 else ZERO for i in range(n_bits)]

    bits = cs.compute(lambda value: [(value >> i) & 1 for i in range(n_bits)], [x], n_bits)
    assert_bits(cs, bits, "bit: decomposition")
    cs.assert_equal(linear_sum((bit, 1 << i) for i, bit in enumerate(bits)), x, label)
    return bits


def bits_to_num(bits: list[LinearCombination]) -> LinearCombination:
    """Pack a big-endian bit array into a single linear combination."""
    n = len(bits)
    return linear_sum((bit, 1 << (n - 1 - i)) for i, bit in enumerate(bits))


def le_bytes_to_num(bits: list[LinearCombination]) -> LinearCombination:
    """Pack a bit array holding a little-endian integer into a single linear combination.

    Bytes are in little-endian order, bits within each byte are most significant first, which is
    how Bitcoin serialises satoshi amounts.

    Example:
        The 16 bits of `0x3412` (the bytes `12 34`) pack to `0x3412`.
    """
    if len(bits) % 8 != 0:
        msg = f"The number of bits must be a multiple of 8: {len(bits)}"
        raise ValueError(msg)
    return linear_sum((bit, 1 << (8 * (i // 8) + 7 - i % 8)) for i, bit in enumerate(bits))


def constant_bits(data: bytes) -> list[LinearCombination]:
    """Return the constant big-endian bit array of `data`."""
    return [ONE if bit else ZERO for bit in bytes_to_bits(data)]


def assert_bits_equal(
    cs: ConstraintSystem, a: list[LinearCombination], b: list[LinearCombination], label: str = "mismatch"
):
    """Constrain two bit arrays to be equal bit-for-bit."""
    if len(a) != len(b):
        msg = f"Cannot compare bit arrays of lengths {len(a)} and {len(b)}"
        raise ValueError(msg)
    for i, (x, y) in enumerate(zip(a, b)):
        cs.assert_equal(x, y, f"{label}[{i}]")
