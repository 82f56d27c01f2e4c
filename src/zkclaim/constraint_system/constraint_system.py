"""Rank-1 constraint system builder and witness generator on top of zksnake."""

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, NamedTuple, TypeAlias, Union

from zksnake.arithmetization import R1CS, Var
from zksnake.arithmetization import ConstraintSystem as SymbolicSystem

from src.zkclaim.constraint_system.linear_combination import (
    MODULUS,
    ONE,
    ONE_WIRE,
    ZERO,
    LinearCombination,
    lift,
)

logger = logging.getLogger(__name__)

Shape: TypeAlias = Union[None, int, tuple[int, int]]


class UnsatisfiedConstraintError(ValueError):
    """Raised when a witness violates a constraint: no proof can be produced for it."""

    def __init__(self, index: int, label: str):
        self.index = index
        self.label = label
        super().__init__(f"Constraint {index} is not satisfied: {label or 'unlabelled'}")


class Constraint(NamedTuple):
    """The constraint `a * b = c`."""

    a: LinearCombination
    b: LinearCombination
    c: LinearCombination
    label: str


@dataclass
class Witness:
    """Full assignment of values to the variables of a constraint system.

    Attributes:
        values (dict[str, int]): Value of every variable, by zksnake name. `values["0"]` is always 1.
    """

    values: dict[str, int]

    def evaluate(self, x: Union[LinearCombination, int]) -> int:
        """Evaluate a linear combination against the witness."""
        return lift(x).evaluate(self.values)

    def evaluate_bits(self, bits: list[LinearCombination]) -> list[int]:
        return [self.evaluate(bit) for bit in bits]

    def __len__(self) -> int:
        return len(self.values)


@dataclass(frozen=True)
class InputSpec:
    """Description of a named input of the constraint system."""

    names: tuple[str, ...]
    shape: Shape
    public: bool

    @property
    def size(self) -> int:
        return len(self.names)


class ConstraintSystem:
    """Rank-1 constraint system over the BN254 scalar field.

    Every constraint `a * b = c` is recorded in a zksnake system, which compiles the circuit to R1CS
    matrices. Wires that are not inputs are filled in by hints registered in a second zksnake
    system, which `solve` runs in registration order. Registration order is a topological order of
    the data flow, so every wire is computed exactly once from the input assignment.

    Inputs are named `name`, `name[i]` or `name[i][j]` according to their shape; other wires are
    named `#k`. All inputs must be declared before the first wire is computed or constrained.

    Attributes:
        name (str): Name of the circuit, used in logs.
        inputs (dict[str, InputSpec]): Named inputs of the circuit.
        constraints (list[Constraint]): The constraints of the circuit, in the order zksnake holds them.

    Notes:
        After construction the system is only read by `check`, and `solve` runs under a lock, so a
        built system can be shared between concurrent witness computations.
    """

    def __init__(self, name: str = "circuit"):
        """Initialise an empty constraint system."""
        self.name = name
        self.inputs: dict[str, InputSpec] = {}
        self.constraints: list[Constraint] = []
        self.__n_internal = 0
        self.__system: SymbolicSystem | None = None
        self.__hints: SymbolicSystem | None = None
        self.__lock = threading.Lock()

    @property
    def public_wires(self) -> list[str]:
        """Names of the public inputs, in declaration order."""
        return [name for spec in self.inputs.values() if spec.public for name in spec.names]

    @property
    def n_wires(self) -> int:
        """Number of variables, including the constant one."""
        return self.__systems()[1].num_witness() + 1

    def __systems(self) -> tuple[SymbolicSystem, SymbolicSystem]:
        if self.__system is None:
            public = self.public_wires
            private = [name for spec in self.inputs.values() if not spec.public for name in spec.names]
            self.__system = SymbolicSystem(private, public, MODULUS)
            for name in public:
                self.__system.set_public(name)
            self.__hints = SymbolicSystem(public + private, [], MODULUS)
            for name in public + private:
                self.__hints.add_variable(Var(name))
        return self.__system, self.__hints

    def __input(self, name: str, shape: Shape, public: bool):
        if name in self.inputs:
            msg = f"Input {name} is already declared"
            raise ValueError(msg)
        if self.__system is not None:
            msg = f"Input {name} is declared after the first constraint"
            raise ValueError(msg)
        if name.startswith("#") or name == ONE_WIRE:
            msg = f"Invalid input name: {name}"
            raise ValueError(msg)

        if shape is None:
            names = (name,)
        elif isinstance(shape, int):
            names = tuple(f"{name}[{i}]" for i in range(shape))
        else:
            names = tuple(f"{name}[{i}][{j}]" for i in range(shape[0]) for j in range(shape[1]))
        self.inputs[name] = InputSpec(names, shape, public)

        wires = [LinearCombination.wire(n) for n in names]
        if shape is None:
            return wires[0]
        if isinstance(shape, int):
            return wires
        return [wires[i * shape[1] : (i + 1) * shape[1]] for i in range(shape[0])]

    def public_input(self, name: str, shape: Shape = None):
        """Declare a public input.

        Args:
            name (str): Key of the input in the assignment passed to `solve`.
            shape (None | int | tuple[int, int]): `None` for a scalar, `n` for a list of `n` values,
                `(m, n)` for `m` lists of `n` values.

        Returns:
            A linear combination, or (nested) lists of linear combinations matching `shape`.
        """
        return self.__input(name, shape, True)

    def private_input(self, name: str, shape: Shape = None):
        """Declare a private input. See `public_input` for the arguments."""
        return self.__input(name, shape, False)

    def compute(
        self,
        function: Callable[..., Union[int, list[int]]],
        operands: list[Union[LinearCombination, int]],
        n: int | None = None,
    ):
        """Allocate wires whose witness values are computed by `function`.

        The new wires are not constrained: callers must add the constraints that pin them down.

        Args:
            function: Receives the values of `operands` as positional arguments and returns the
                value of the new wire (`n is None`) or the list of `n` values.
            operands (list[LinearCombination | int]): The linear combinations the new values depend on.
            n (int | None): Number of wires to allocate, `None` for a single wire.

        Returns:
            The new wire, or the list of new wires.
        """
        _, hints = self.__systems()
        operands = [lift(operand) for operand in operands]
        arguments = sorted({name for operand in operands for name in operand.variables()})

        def run(index: int | None) -> Callable[..., int]:
            def hint(**values: int) -> int:
                output = function(*(operand.evaluate(values) for operand in operands))
                return int((output if index is None else output[index]) % MODULUS)

            return hint

        wires = []
        for index in [None] if n is None else range(n):
            name = f"#{self.__n_internal}"
            self.__n_internal += 1
            wire = Var(name)
            hints.add_variable(wire)
            hints.unsafe_assign(wire, run(index), arguments)
            wires.append(LinearCombination.wire(name))
        return wires[0] if n is None else wires

    def enforce(
        self,
        a: Union[LinearCombination, int],
        b: Union[LinearCombination, int],
        c: Union[LinearCombination, int],
        label: str = "",
    ):
        """Add the constraint `a * b = c`.

        Constraints with a constant factor are folded into linear constraints `(a * b - c) * 1 = 0`.

        Raises:
            ValueError: If the constraint only involves constants and does not hold.
        """
        system, _ = self.__systems()
        a, b, c = lift(a), lift(b), lift(c)
        if a.is_constant() or b.is_constant():
            difference = (b * a.constant_value() if a.is_constant() else a * b.constant_value()) - c
            if difference.is_constant():
                if difference.constant_value() != 0:
                    msg = f"Constant constraint can never be satisfied: {label}"
                    raise ValueError(msg)
                return
            a, b, c = difference, ONE, ZERO
            product = difference.to_field()
        else:
            product = a.to_field() * b.to_field()

        if c.is_constant():
            system.add_constraint(product == c.constant_value())
        else:
            system.add_constraint(c.to_field() == product)
        self.constraints.append(Constraint(a, b, c, label))

    def mul(
        self, a: Union[LinearCombination, int], b: Union[LinearCombination, int], label: str = ""
    ) -> LinearCombination:
        """Return a wire constrained to `a * b`. Products with a constant need no constraint."""
        a, b = lift(a), lift(b)
        if a.is_constant():
            return b * a.constant_value()
        if b.is_constant():
            return a * b.constant_value()
        product = self.compute(lambda u, v: u * v, [a, b])
        self.enforce(a, b, product, label)
        return product

    def assert_equal(self, a: Union[LinearCombination, int], b: Union[LinearCombination, int], label: str = ""):
        """Add the linear constraint `a = b`."""
        self.enforce(ONE, a, b, label)

    def assert_zero(self, a: Union[LinearCombination, int], label: str = ""):
        self.enforce(ONE, a, ZERO, label)

    def solve(self, assignment: dict[str, Any], check: bool = True) -> Witness:
        """Generate the witness for `assignment`.

        Args:
            assignment (dict[str, Any]): Value of every declared input, shaped as declared.
            check (bool): If `True`, raise if the witness does not satisfy every constraint.
                Defaults to `True`.

        Returns:
            The witness.

        Raises:
            ValueError: If an input is missing, unknown or mis-shaped.
            UnsatisfiedConstraintError: If `check` is `True` and a constraint is violated.
        """
        missing = set(self.inputs) - set(assignment)
        if missing:
            msg = f"Missing inputs: {sorted(missing)}"
            raise ValueError(msg)
        unknown = set(assignment) - set(self.inputs)
        if unknown:
            msg = f"Unknown inputs: {sorted(unknown)}"
            raise ValueError(msg)

        inputs = {}
        for name, spec in self.inputs.items():
            values = _flatten(name, assignment[name], spec.shape)
            inputs.update(zip(spec.names, (value % MODULUS for value in values)))

        _, hints = self.__systems()
        with self.__lock:
            values = hints.solve(inputs)
        values[ONE_WIRE] = 1

        witness = Witness(values)
        logger.debug("%s: generated witness with %d wires", self.name, len(values))
        if check:
            self.check(witness)
        return witness

    def check(self, witness: Witness):
        """Raise `UnsatisfiedConstraintError` for the first constraint violated by `witness`."""
        system, _ = self.__systems()
        values = witness.values
        for index, (equation, constraint) in enumerate(zip(system.constraints, self.constraints)):
            scope = {name: values[name] for part in constraint[:3] for name in part.variables()}
            left, right = equation.evaluate(scope, MODULUS)
            if left != right:
                raise UnsatisfiedConstraintError(index, constraint.label)

    def is_satisfied(self, witness: Witness) -> bool:
        try:
            self.check(witness)
        except UnsatisfiedConstraintError:
            return False
        return True

    def public_inputs(self, witness: Witness) -> list[int]:
        """Return the public input vector of `witness`, in declaration order."""
        return [witness.values[name] for name in self.public_wires]

    def statistics(self) -> dict[str, int]:
        n_inputs = sum(spec.size for spec in self.inputs.values())
        n_public = len(self.public_wires)
        return {
            "n_wires": self.n_wires,
            "n_constraints": self.__systems()[0].num_constraints(),
            "n_public_inputs": n_public,
            "n_private_inputs": n_inputs - n_public,
        }

    def r1cs(self) -> R1CS:
        """Compile the system into zksnake R1CS matrices.

        The compilation time grows quadratically with the number of constraints, so this is only
        practical for small circuits.
        """
        r1cs = R1CS(self.__systems()[0])
        r1cs.compile()
        return r1cs

    def to_r1cs(self) -> dict[str, Any]:
        """Export the system as JSON-serialisable sparse matrices.

        Returns:
            A dictionary with the field modulus, the witness vector layout, the public wires and,
            for every constraint, the rows `A`, `B`, `C` as maps `wire -> coefficient` (decimal
            strings).
        """
        r1cs = self.r1cs()

        def row(matrix, index: int) -> dict[str, str]:
            entries: dict[int, int] = {}
            for column, value in matrix.triplets_map.get(index, []):
                entries[column] = (entries.get(column, 0) + value) % MODULUS
            return {str(column): str(value) for column, value in sorted(entries.items()) if value}

        return {
            "modulus": str(MODULUS),
            "n_wires": self.n_wires,
            "witness": r1cs.constraint_system.get_witness_vector(),
            "public_wires": list(range(1, r1cs.n_public)),
            "constraints": [
                {"A": row(r1cs.A, index), "B": row(r1cs.B, index), "C": row(r1cs.C, index), "label": label}
                for index, (_, _, _, label) in enumerate(self.constraints)
            ],
        }


def _flatten(name: str, value: Any, shape: Shape) -> list[int]:
    """Flatten an assignment value according to the declared shape of the input."""
    if shape is None:
        if isinstance(value, (list, tuple)):
            msg = f"Input {name} must be a scalar"
            raise ValueError(msg)
        return [int(value)]
    if isinstance(shape, int):
        if len(value) != shape:
            msg = f"Input {name} must have length {shape}: length: {len(value)}"
            raise ValueError(msg)
        return [int(v) for v in value]
    rows, columns = shape
    if len(value) != rows or any(len(v) != columns for v in value):
        msg = f"Input {name} must have shape {shape}"
        raise ValueError(msg)
    return [int(v) for vector in value for v in vector]
