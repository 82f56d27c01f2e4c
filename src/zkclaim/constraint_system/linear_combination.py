"""Linear combinations of named zksnake variables over the BN254 scalar field."""

from typing import Iterable, Self, Union

from zksnake.arithmetization import Var
from zksnake.constant import BN254_SCALAR_FIELD

MODULUS = BN254_SCALAR_FIELD
# Name of the constant entry of a zksnake witness vector
ONE_WIRE = "0"


class LinearCombination:
    """Linear combination `sum_i c_i * w_i` of zksnake variables.

    Attributes:
        terms (dict[str, int]): Map from variable name to its (non-zero) coefficient modulo `MODULUS`.

    Notes:
        zksnake expressions are opaque trees, and its R1CS compiler only accepts rows built from
        `Var * constant` terms joined by additions. Gadgets therefore combine wires here and turn
        the result into a zksnake expression with `to_field` when a constraint is recorded.
        Instances are never mutated after construction and can be shared freely.
    """

    __slots__ = ("terms",)

    def __init__(self, terms: dict[str, int] | None = None):
        self.terms = terms if terms is not None else {}

    @classmethod
    def constant(cls, value: int) -> Self:
        value %= MODULUS
        return cls({ONE_WIRE: value} if value else {})

    @classmethod
    def wire(cls, name: str) -> Self:
        return cls({name: 1})

    def is_constant(self) -> bool:
        return all(name == ONE_WIRE for name in self.terms)

    def constant_value(self) -> int:
        return self.terms.get(ONE_WIRE, 0)

    def variables(self) -> list[str]:
        """Return the names of the variables the combination depends on."""
        return [name for name in self.terms if name != ONE_WIRE]

    def evaluate(self, values: dict[str, int]) -> int:
        """Evaluate the combination, `values` mapping variable names to their values."""
        total = self.constant_value()
        for name, coefficient in self.terms.items():
            if name != ONE_WIRE:
                total += values[name] * coefficient
        return total % MODULUS

    def to_field(self) -> Var:
        """Return the zksnake expression `sum_i Var(w_i) * c_i + constant`.

        The sum is built as a balanced tree of additions.

        Raises:
            ValueError: If the combination is constant.
        """
        nodes = [Var(name) if coefficient == 1 else Var(name) * coefficient for name, coefficient in self.terms.items() if name != ONE_WIRE]
        if not nodes:
            msg = "A constant has no zksnake expression"
            raise ValueError(msg)
        while len(nodes) > 1:
            nodes = [nodes[i] + nodes[i + 1] if i + 1 < len(nodes) else nodes[i] for i in range(0, len(nodes), 2)]
        constant = self.constant_value()
        return nodes[0] + constant if constant else nodes[0]

    def __add__(self, other: Union[Self, int]) -> Self:
        terms = dict(self.terms)
        for name, coefficient in lift(other).terms.items():
            value = (terms.get(name, 0) + coefficient) % MODULUS
            if value:
                terms[name] = value
            else:
                terms.pop(name, None)
        return LinearCombination(terms)

    __radd__ = __add__

    def __neg__(self) -> Self:
        return LinearCombination({name: MODULUS - coefficient for name, coefficient in self.terms.items()})

    def __sub__(self, other: Union[Self, int]) -> Self:
        return self + (-lift(other))

    def __rsub__(self, other: int) -> Self:
        return lift(other) - self

    def __mul__(self, scalar: int) -> Self:
        if isinstance(scalar, LinearCombination):
            msg = "The product of two linear combinations needs a constraint: use ConstraintSystem.mul"
            raise TypeError(msg)
        scalar %= MODULUS
        if scalar == 0:
            return LinearCombination()
        return LinearCombination({name: coefficient * scalar % MODULUS for name, coefficient in self.terms.items()})

    __rmul__ = __mul__

    def __repr__(self) -> str:
        return f"LinearCombination({self.terms})"


def lift(value: Union[LinearCombination, int]) -> LinearCombination:
    """Turn an integer into a constant linear combination, leave linear combinations untouched."""
    if isinstance(value, LinearCombination):
        return value
    if isinstance(value, int):
        return LinearCombination.constant(value)
    msg = f"Cannot interpret {value!r} as a linear combination"
    raise TypeError(msg)


def linear_sum(items: Iterable[Union[LinearCombination, tuple[LinearCombination, int]]]) -> LinearCombination:
    """Compute `sum_j k_j * x_j` in a single pass.

    Args:
        items: Either linear combinations `x_j` (weight 1) or pairs `(x_j, k_j)`.

    Example:
        >>> a, b = LinearCombination.wire("a"), LinearCombination.wire("b")
        >>> linear_sum([(a, 2), (b, 4), a])
        LinearCombination({'a': 3, 'b': 4})
    """
    terms: dict[str, int] = {}
    for item in items:
        element, weight = item if isinstance(item, tuple) else (item, 1)
        for name, coefficient in lift(element).terms.items():
            terms[name] = (terms.get(name, 0) + coefficient * weight) % MODULUS
    return LinearCombination({name: coefficient for name, coefficient in terms.items() if coefficient})


ZERO = LinearCombination()
ONE = LinearCombination.constant(1)
