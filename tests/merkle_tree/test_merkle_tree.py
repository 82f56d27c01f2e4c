from dataclasses import dataclass

import pytest
from tx_engine import hash256d

from src.zkclaim.constraint_system.constraint_system import ConstraintSystem, UnsatisfiedConstraintError
from src.zkclaim.gadgets.bits import assert_bits
from src.zkclaim.merkle_tree.merkle_tree import MerkleHiddenRootVerifier, MerkleLevelStep
from src.zkclaim.util.utility_functions import bits_to_bytes, bytes_to_bits
from src.zkclaim.witness.merkle_proof import make_decoy_root, merkle_proof, merkle_root, path_indices
from tests.util import save_circuit

MAX_DEPTH = 3
NUM_ROOTS = 2


@dataclass
class MerkleTree:
    filename = "merkle_tree"
    tx_ids = [hash256d(i.to_bytes(4, "little")) for i in range(8)]
    test_data = {
        # (number of transactions in the block, index of the transaction, index of the true root)
        "test_inclusion": [(6, 5, 1), (6, 0, 0), (8, 3, 1), (4, 2, 0), (3, 2, 1), (2, 1, 0)],
        # (input, level, position) of the flipped bit
        "test_flipped_bit": [
            ("siblings", 0, 17),
            ("siblings", 2, 255),
            ("directions", 1, None),
            ("leaf", None, 0),
            ("roots", 1, 200),
        ],
    }


def build_assignment(n_transactions: int, index: int, root_index: int) -> dict:
    tx_ids = MerkleTree.tx_ids[:n_transactions]
    proof = merkle_proof(tx_ids, index)
    depth = len(proof)
    root = merkle_root(tx_ids)
    roots = [make_decoy_root(root)] * NUM_ROOTS
    roots[root_index] = root
    return {
        "leaf": bytes_to_bits(tx_ids[index]),
        "siblings": [bytes_to_bits(sibling) for sibling in proof] + [[0] * 256 for _ in range(MAX_DEPTH - depth)],
        "directions": path_indices(index, depth) + [0] * (MAX_DEPTH - depth),
        "depth": depth,
        "root_index": root_index,
        "roots": [bytes_to_bits(r) for r in roots],
    }


@pytest.fixture(scope="module")
def verifier_circuit():
    cs = ConstraintSystem("merkle")
    leaf = cs.private_input("leaf", 256)
    siblings = cs.private_input("siblings", (MAX_DEPTH, 256))
    directions = cs.private_input("directions", MAX_DEPTH)
    depth = cs.private_input("depth")
    root_index = cs.private_input("root_index")
    roots = cs.private_input("roots", (NUM_ROOTS, 256))
    assert_bits(cs, leaf, "bit: leaf")
    MerkleHiddenRootVerifier(MAX_DEPTH, NUM_ROOTS).verify(cs, leaf, siblings, directions, depth, root_index, roots)
    return cs


@pytest.mark.parametrize("direction", [0, 1])
def test_level_step(direction):
    cs = ConstraintSystem()
    current, sibling = cs.private_input("current", 256), cs.private_input("sibling", 256)
    parent = MerkleLevelStep.step(cs, current, sibling, cs.private_input("direction"), "level")
    a, b = MerkleTree.tx_ids[0], MerkleTree.tx_ids[1]
    witness = cs.solve({"current": bytes_to_bits(a), "sibling": bytes_to_bits(b), "direction": direction})
    assert bits_to_bytes(witness.evaluate_bits(parent)) == (hash256d(b + a) if direction else hash256d(a + b))

    with pytest.raises(UnsatisfiedConstraintError, match="bit: level direction"):
        cs.solve({"current": bytes_to_bits(a), "sibling": bytes_to_bits(b), "direction": 2})


@pytest.mark.parametrize(("n_transactions", "index", "root_index"), MerkleTree.test_data["test_inclusion"])
def test_inclusion(n_transactions, index, root_index, verifier_circuit, save_to_json_folder):
    witness = verifier_circuit.solve(build_assignment(n_transactions, index, root_index))
    assert verifier_circuit.is_satisfied(witness)

    if save_to_json_folder:
        save_circuit(
            verifier_circuit.statistics(), [], save_to_json_folder, MerkleTree.filename, "merkle_hidden_root"
        )


@pytest.mark.parametrize(("name", "level", "position"), MerkleTree.test_data["test_flipped_bit"])
def test_flipped_bit(name, level, position, verifier_circuit):
    assignment = build_assignment(8, 5, 1)
    if name == "leaf":
        assignment["leaf"][position] ^= 1
    elif name == "directions":
        assignment["directions"][level] ^= 1
    else:
        assignment[name][level][position] ^= 1
    with pytest.raises(UnsatisfiedConstraintError, match="mismatch: merkle root"):
        verifier_circuit.solve(assignment)


def test_selected_root_is_not_the_true_root(verifier_circuit):
    assignment = build_assignment(8, 5, 1)
    assignment["root_index"] = 0
    with pytest.raises(UnsatisfiedConstraintError, match="mismatch: merkle root"):
        verifier_circuit.solve(assignment)


@pytest.mark.parametrize("field", ["siblings", "directions"])
def test_levels_beyond_depth_are_zero(field, verifier_circuit):
    assignment = build_assignment(4, 2, 0)
    assert assignment["depth"] == 2
    if field == "siblings":
        assignment["siblings"][2][0] = 1
    else:
        assignment["directions"][2] = 1
    with pytest.raises(UnsatisfiedConstraintError, match="mismatch: merkle level 2 beyond the depth"):
        verifier_circuit.solve(assignment)


@pytest.mark.parametrize(
    ("field", "value", "label"),
    [("depth", 0, "range: merkle depth"), ("depth", MAX_DEPTH + 1, "range: merkle depth"), ("root_index", NUM_ROOTS, "range: merkle root index")],
)
def test_out_of_range(field, value, label, verifier_circuit):
    assignment = build_assignment(8, 5, 1)
    assignment[field] = value
    with pytest.raises(UnsatisfiedConstraintError, match=label):
        verifier_circuit.solve(assignment)


def test_hidden_root_witnesses_have_the_same_shape(verifier_circuit):
    first = verifier_circuit.solve(build_assignment(8, 5, 0))
    second = verifier_circuit.solve(build_assignment(8, 5, 1))
    assert len(first) == len(second) == verifier_circuit.n_wires
    assert verifier_circuit.is_satisfied(first) and verifier_circuit.is_satisfied(second)


def test_verifier_sizes():
    with pytest.raises(ValueError):
        MerkleHiddenRootVerifier(0, 2)
    cs = ConstraintSystem()
    leaf = cs.private_input("leaf", 256)
    with pytest.raises(ValueError):
        MerkleHiddenRootVerifier(2, 1).verify(cs, leaf, [leaf], [leaf[0]], 1, 0, [leaf])
