import pytest

from src.zkclaim.constraint_system.constraint_system import ConstraintSystem, UnsatisfiedConstraintError
from src.zkclaim.gadgets.selector import BitSelector, prefix_mask, select_bits, weighted_sum


def selector_circuit(size, start):
    cs = ConstraintSystem()
    index = cs.private_input("index")
    values = cs.private_input("values", size)
    arrays = cs.private_input("arrays", (size, 3))
    selector = BitSelector(size, start)
    indicators = selector.select(cs, index, "range: index")
    return cs, {
        "indicators": indicators,
        "value": weighted_sum(cs, indicators, values),
        "array": select_bits(cs, indicators, arrays),
        "mask": prefix_mask(selector, indicators, size + start),
    }


@pytest.mark.parametrize(("size", "start", "index"), [(1, 0, 0), (4, 0, 2), (4, 1, 1), (4, 1, 4), (5, 3, 6)])
def test_select(size, start, index):
    cs, outputs = selector_circuit(size, start)
    values = [10 * (i + 1) for i in range(size)]
    arrays = [[(i >> k) & 1 for k in range(3)] for i in range(size)]
    witness = cs.solve({"index": index, "values": values, "arrays": arrays})

    position = index - start
    assert witness.evaluate_bits(outputs["indicators"]) == [int(i == position) for i in range(size)]
    assert witness.evaluate(outputs["value"]) == values[position]
    assert witness.evaluate_bits(outputs["array"]) == arrays[position]
    assert witness.evaluate_bits(outputs["mask"]) == [int(k < index) for k in range(size + start)]


@pytest.mark.parametrize(("size", "start", "index"), [(4, 0, 4), (4, 1, 0), (4, 1, 5), (2, 0, 2**64)])
def test_select_out_of_range(size, start, index):
    cs, _ = selector_circuit(size, start)
    with pytest.raises(UnsatisfiedConstraintError, match="range: index"):
        cs.solve({"index": index, "values": [0] * size, "arrays": [[0, 0, 0]] * size})


def test_selector_misuse():
    with pytest.raises(ValueError):
        BitSelector(0)
    cs = ConstraintSystem()
    indicators = BitSelector(2).select(cs, cs.private_input("index"))
    with pytest.raises(ValueError):
        weighted_sum(cs, indicators, [1, 2, 3])
    with pytest.raises(ValueError):
        select_bits(cs, indicators, [[1, 0], [1]])
