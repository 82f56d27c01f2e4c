import pytest

from src.zkclaim.constraint_system.constraint_system import ConstraintSystem, UnsatisfiedConstraintError
from src.zkclaim.constraint_system.linear_combination import MODULUS
from src.zkclaim.gadgets.bits import (
    MAX_DECOMPOSITION_BITS,
    assert_bit,
    assert_bits_equal,
    bits_to_num,
    constant_bits,
    is_equal,
    is_zero,
    le_bytes_to_num,
    mux,
    num_to_bits,
    xor,
)


@pytest.mark.parametrize("value", [0, 1])
def test_assert_bit(value):
    cs = ConstraintSystem()
    assert_bit(cs, cs.private_input("x"), "bit: x")
    assert cs.is_satisfied(cs.solve({"x": value}))


@pytest.mark.parametrize("value", [2, MODULUS - 1])
def test_assert_bit_rejects_non_bits(value):
    cs = ConstraintSystem()
    assert_bit(cs, cs.private_input("x"), "bit: x")
    with pytest.raises(UnsatisfiedConstraintError, match="bit: x"):
        cs.solve({"x": value})


@pytest.mark.parametrize(("a", "b"), [(0, 0), (0, 1), (1, 0), (1, 1)])
def test_xor_and_mux(a, b):
    cs = ConstraintSystem()
    x, y = cs.private_input("a"), cs.private_input("b")
    xor_output = xor(cs, x, y)
    mux_output = mux(cs, x, 10, y)
    witness = cs.solve({"a": a, "b": b})
    assert witness.evaluate(xor_output) == a ^ b
    assert witness.evaluate(mux_output) == (b if a else 10)


@pytest.mark.parametrize(("a", "b"), [(0, 0), (5, 5), (5, 6), (0, MODULUS - 1), (12345, 54321)])
def test_is_zero_and_is_equal(a, b):
    cs = ConstraintSystem()
    x, y = cs.private_input("a"), cs.private_input("b")
    zero = is_zero(cs, x)
    equal = is_equal(cs, x, y)
    witness = cs.solve({"a": a, "b": b})
    assert witness.evaluate(zero) == int(a == 0)
    assert witness.evaluate(equal) == int(a == b)


def test_is_zero_cannot_be_forged():
    cs = ConstraintSystem()
    x = cs.private_input("x")
    out = is_zero(cs, x, "is_zero: x")
    witness = cs.solve({"x": 7})
    assert witness.evaluate(out) == 0

    # Claim that 7 is zero by setting the product wire to 0
    (product_wire,) = out.variables()
    witness.values[product_wire] = 0
    with pytest.raises(UnsatisfiedConstraintError):
        cs.check(witness)


@pytest.mark.parametrize(
    ("value", "n_bits"), [(0, 1), (0b1011, 4), (2**64 - 1, 64), (2**252 + 3, MAX_DECOMPOSITION_BITS)]
)
def test_num_to_bits(value, n_bits):
    cs = ConstraintSystem()
    x = cs.private_input("x")
    bits = num_to_bits(cs, x, n_bits, "range: x")
    witness = cs.solve({"x": value})
    assert witness.evaluate_bits(bits) == [(value >> i) & 1 for i in range(n_bits)]
    assert witness.evaluate(bits_to_num(bits[::-1])) == value


@pytest.mark.parametrize(("value", "n_bits"), [(16, 4), (2**64, 64)])
def test_num_to_bits_out_of_range(value, n_bits):
    cs = ConstraintSystem()
    num_to_bits(cs, cs.private_input("x"), n_bits, "range: x")
    with pytest.raises(UnsatisfiedConstraintError, match="range: x"):
        cs.solve({"x": value})


def test_num_to_bits_size_limit():
    cs = ConstraintSystem()
    with pytest.raises(ValueError):
        num_to_bits(cs, cs.private_input("x"), MAX_DECOMPOSITION_BITS + 1)


def test_packing():
    bits = constant_bits(bytes.fromhex("1234"))
    assert bits_to_num(bits).constant_value() == 0x1234
    assert le_bytes_to_num(bits).constant_value() == 0x3412
    with pytest.raises(ValueError):
        le_bytes_to_num(bits[:12])


def test_assert_bits_equal():
    cs = ConstraintSystem()
    a, b = cs.private_input("a", 4), cs.private_input("b", 4)
    assert_bits_equal(cs, a, b, "mismatch: a")
    assert cs.is_satisfied(cs.solve({"a": [1, 0, 1, 1], "b": [1, 0, 1, 1]}))
    with pytest.raises(UnsatisfiedConstraintError, match=r"mismatch: a\[2\]"):
        cs.solve({"a": [1, 0, 1, 1], "b": [1, 0, 0, 1]})
    with pytest.raises(ValueError):
        assert_bits_equal(cs, a, b[:3])
