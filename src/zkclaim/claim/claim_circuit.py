"""Top-level claim circuit.

The circuit proves, without revealing the transaction, that:
    - the commitment `SHA256(secret || amount || chain_id || recipient)` is embedded in the
      transaction at a private byte offset,
    - `nullifier` is derived from the same secret,
    - `locker_script_hash` is the hash of the locker script,
    - an output of the transaction pays `amount` to the locker script,
    - the transaction id is the double SHA-256 of the transaction,
    - the transaction id is included under one of the public Merkle roots.

Public inputs, in order:
    `merkle_roots[0], ..., merkle_roots[num_merkle_roots - 1], nullifier, amount, chain_id,
    recipient, locker_script_hash`

Private inputs:
    `secret`, `locker_script`, `locker_script_length`, `locker_output_byte_offset`,
    `commitment_byte_offset`, `root_index`, `merkle_proof`, `merkle_path_indices`,
    `merkle_depth`, `merkle_root_bits`, `padded_transaction`, `num_blocks`, `tx_id`
"""

import logging
from typing import Any

from src.zkclaim.claim.claim_parameters import ClaimParameters, default_parameters
from src.zkclaim.constraint_system.constraint_system import ConstraintSystem, Witness
from src.zkclaim.constraint_system.linear_combination import LinearCombination
from src.zkclaim.gadgets.bits import assert_bits, assert_bits_equal, bits_to_num, constant_bits, num_to_bits
from src.zkclaim.gadgets.extractor import ByteOffsetExtractor
from src.zkclaim.hashing.double_hasher import VariableLengthDoubleHasher
from src.zkclaim.hashing.sha256 import DIGEST_BITS, sha256
from src.zkclaim.merkle_tree.merkle_tree import MerkleHiddenRootVerifier
from src.zkclaim.transaction.tx_output_verifier import TxOutputVerifier
from src.zkclaim.util.utility_functions import FIELD_ELEMENT_BITS

logger = logging.getLogger(__name__)

SECRET_BITS = 256
AMOUNT_BITS = 64
CHAIN_ID_BITS = 16
RECIPIENT_BITS = 160
COMMITMENT_BYTES = 32
# OP_RETURN followed by a 32-byte push
COMMITMENT_PREFIX = bytes.fromhex("6a20")


def to_field_element(digest: list[LinearCombination]) -> LinearCombination:
    """Pack the leading 254 bits of a digest into one field element."""
    return bits_to_num(digest[:FIELD_ELEMENT_BITS])


def to_big_endian_bits(cs: ConstraintSystem, x: LinearCombination, n_bits: int, label: str) -> list[LinearCombination]:
    """Range-check `x` to `n_bits` bits and return them most significant first."""
    return list(reversed(num_to_bits(cs, x, n_bits, label)))


class ClaimCircuit:
    """Claim circuit for a set of compile-time parameters.

    The constraint system is built once in `__init__` and never modified afterwards: `solve` may be
    called any number of times, from several threads, with different assignments.

    Attributes:
        parameters (ClaimParameters): The compile-time sizes.
        cs (ConstraintSystem): The constraint system of the circuit.
    """

    def __init__(self, parameters: ClaimParameters = default_parameters):
        self.parameters = parameters
        self.cs = ConstraintSystem("claim")
        self.__build()
        logger.info(
            "Built claim circuit: %d constraints, %d wires, %d public inputs",
            len(self.cs.constraints),
            self.cs.n_wires,
            len(self.cs.public_wires),
        )

    def __build(self):
        cs, p = self.cs, self.parameters

        # Public inputs
        merkle_roots = cs.public_input("merkle_roots", p.num_merkle_roots)
        nullifier = cs.public_input("nullifier")
        amount = cs.public_input("amount")
        chain_id = cs.public_input("chain_id")
        recipient = cs.public_input("recipient")
        locker_script_hash = cs.public_input("locker_script_hash")

        # Private inputs
        secret = cs.private_input("secret", SECRET_BITS)
        locker_script = cs.private_input("locker_script", p.locker_script_bits)
        locker_script_length = cs.private_input("locker_script_length")
        locker_output_byte_offset = cs.private_input("locker_output_byte_offset")
        commitment_byte_offset = cs.private_input("commitment_byte_offset")
        root_index = cs.private_input("root_index")
        merkle_proof = cs.private_input("merkle_proof", (p.merkle_depth, DIGEST_BITS))
        merkle_path_indices = cs.private_input("merkle_path_indices", p.merkle_depth)
        merkle_depth = cs.private_input("merkle_depth")
        merkle_root_bits = cs.private_input("merkle_root_bits", (p.num_merkle_roots, DIGEST_BITS))
        padded_transaction = cs.private_input("padded_transaction", p.max_padded_bits)
        num_blocks = cs.private_input("num_blocks")
        tx_id = cs.private_input("tx_id", DIGEST_BITS)

        assert_bits(cs, secret, "bit: secret")
        assert_bits(cs, locker_script, "bit: locker script")
        assert_bits(cs, padded_transaction, "bit: padded transaction")
        assert_bits(cs, tx_id, "bit: transaction id")

        # Commitment binding
        commitment = sha256(
            cs,
            secret
            + to_big_endian_bits(cs, amount, AMOUNT_BITS, "range: amount")
            + to_big_endian_bits(cs, chain_id, CHAIN_ID_BITS, "range: chain id")
            + to_big_endian_bits(cs, recipient, RECIPIENT_BITS, "range: recipient"),
        )
        commitment_extractor = ByteOffsetExtractor(p.max_padded_bytes, len(COMMITMENT_PREFIX) + COMMITMENT_BYTES)
        commitment_script = commitment_extractor.extract(
            cs, padded_transaction, commitment_byte_offset - len(COMMITMENT_PREFIX), "commitment"
        )
        prefix_bits = 8 * len(COMMITMENT_PREFIX)
        assert_bits_equal(
            cs,
            commitment_script[:prefix_bits],
            constant_bits(COMMITMENT_PREFIX),
            "mismatch: commitment is not in an OP_RETURN push",
        )
        embedded_commitment = commitment_script[prefix_bits:]
        assert_bits_equal(cs, embedded_commitment, commitment, "mismatch: commitment")

        # Nullifier binding
        nullifier_digest = sha256(cs, secret + constant_bits(bytes([p.nullifier_suffix])))
        cs.assert_equal(to_field_element(nullifier_digest), nullifier, "mismatch: nullifier")

        # Locker binding
        locker_digest = sha256(cs, locker_script)
        cs.assert_equal(to_field_element(locker_digest), locker_script_hash, "mismatch: locker script hash")

        # Output binding
        output_verifier = TxOutputVerifier(p.max_padded_bytes, p.locker_script_bits, p.supported_script_lengths)
        output_match = output_verifier.verify(
            cs, padded_transaction, locker_output_byte_offset, amount, locker_script, locker_script_length
        )
        cs.assert_equal(output_match, 1, "mismatch: locker output")

        # Transaction id binding
        hasher = VariableLengthDoubleHasher(p.max_blocks)
        computed_tx_id = hasher.hash(cs, padded_transaction, num_blocks, "transaction")
        assert_bits_equal(cs, computed_tx_id, tx_id, "mismatch: transaction id")

        # Inclusion binding
        merkle_verifier = MerkleHiddenRootVerifier(p.merkle_depth, p.num_merkle_roots)
        merkle_verifier.verify(
            cs, tx_id, merkle_proof, merkle_path_indices, merkle_depth, root_index, merkle_root_bits
        )
        for r in range(p.num_merkle_roots):
            cs.assert_equal(
                to_field_element(merkle_root_bits[r]), merkle_roots[r], f"mismatch: merkle root {r} public input"
            )

    def solve(self, assignment: dict[str, Any], check: bool = True) -> Witness:
        """Generate the witness of a claim.

        Args:
            assignment (dict[str, Any]): Value of every public and private input, e.g. produced by
                `ClaimWitness.to_assignment`.
            check (bool): If `True`, raise if the claim is invalid. Defaults to `True`.

        Returns:
            The witness.

        Raises:
            ValueError: If an input is missing or mis-shaped.
            UnsatisfiedConstraintError: If `check` is `True` and the claim is invalid.
        """
        witness = self.cs.solve(assignment, check)
        logger.info("Solved claim witness: %d wires", len(witness))
        return witness

    def is_satisfied(self, witness: Witness) -> bool:
        return self.cs.is_satisfied(witness)

    def public_inputs(self, witness: Witness) -> list[int]:
        """Return the public input vector, in the order expected by the verifier contract."""
        return self.cs.public_inputs(witness)

    def statistics(self) -> dict[str, int]:
        return self.cs.statistics()

    def to_r1cs(self) -> dict[str, Any]:
        return self.cs.to_r1cs()
