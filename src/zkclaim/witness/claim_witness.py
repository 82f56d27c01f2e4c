import logging
from dataclasses import dataclass
from typing import Any

from tx_engine import hash256d

from src.zkclaim.claim.claim_parameters import ClaimParameters
from src.zkclaim.util.utility_functions import bytes_to_bits, pad_for_circuit
from src.zkclaim.witness.deposit import compute_commitment, compute_locker_script_hash, compute_nullifier, pad_locker_script
from src.zkclaim.witness.merkle_proof import path_indices, root_to_public_input
from src.zkclaim.witness.transaction import find_commitment_offset, find_output_offset, parse_outputs, strip_witness_data

logger = logging.getLogger(__name__)


@dataclass
class ClaimWitness:
    """Everything the prover knows about a claim.

    Attributes:
        secret (bytes): The 32-byte deposit secret.
        amount (int): Deposited amount in satoshis.
        chain_id (int): Destination chain id.
        recipient (bytes): The 20-byte recipient address.
        locker_script (bytes): Locking script of the locker output.
        transaction (bytes): Deposit transaction without witness data.
        locker_output_offset (int): Byte offset of the locker output.
        commitment_offset (int): Byte offset of the commitment.
        merkle_proof (list[bytes]): Siblings from the transaction id to the root, leaf level first.
        tx_index (int): Position of the transaction in its block.
        merkle_roots (list[bytes]): Candidate roots, internal byte order.
        root_index (int): Index of the root of the block holding the transaction.
    """

    secret: bytes
    amount: int
    chain_id: int
    recipient: bytes
    locker_script: bytes
    transaction: bytes
    locker_output_offset: int
    commitment_offset: int
    merkle_proof: list[bytes]
    tx_index: int
    merkle_roots: list[bytes]
    root_index: int

    @classmethod
    def from_transaction(
        cls,
        secret: bytes,
        chain_id: int,
        recipient: bytes,
        locker_script: bytes,
        raw_tx: bytes,
        merkle_proof: list[bytes],
        tx_index: int,
        merkle_roots: list[bytes],
        root_index: int,
        amount: int | None = None,
    ):
        """Locate the locker output and the commitment in a raw deposit transaction.

        Args:
            secret (bytes): The 32-byte deposit secret.
            chain_id (int): Destination chain id.
            recipient (bytes): The 20-byte recipient address.
            locker_script (bytes): Locking script of the locker.
            raw_tx (bytes): The deposit transaction, with or without witness data.
            merkle_proof (list[bytes]): Siblings of the transaction's Merkle path.
            tx_index (int): Position of the transaction in its block.
            merkle_roots (list[bytes]): Candidate roots, internal byte order.
            root_index (int): Index of the root of the block holding the transaction.
            amount (int | None): Deposited amount. If `None`, the amount of the locker output.

        Returns:
            The claim witness.

        Raises:
            ValueError: If the transaction has no output paying the locker or no commitment
                matching the secret and claim data.
        """
        transaction = strip_witness_data(raw_tx)
        locker_output_offset = find_output_offset(transaction, locker_script, amount)
        if amount is None:
            amount = next(output.amount for output in parse_outputs(transaction) if output.offset == locker_output_offset)
        commitment = compute_commitment(secret, amount, chain_id, recipient)
        commitment_offset = find_commitment_offset(transaction, commitment)
        logger.debug(
            "Deposit transaction of %d bytes: locker output at %d, commitment at %d",
            len(transaction),
            locker_output_offset,
            commitment_offset,
        )
        return cls(
            secret=secret,
            amount=amount,
            chain_id=chain_id,
            recipient=recipient,
            locker_script=locker_script,
            transaction=transaction,
            locker_output_offset=locker_output_offset,
            commitment_offset=commitment_offset,
            merkle_proof=merkle_proof,
            tx_index=tx_index,
            merkle_roots=merkle_roots,
            root_index=root_index,
        )

    @property
    def tx_id(self) -> bytes:
        """Transaction id in internal byte order."""
        return hash256d(self.transaction)

    def public_inputs(self, parameters: ClaimParameters) -> list[int]:
        """Return the public input vector the circuit should produce for this claim."""
        return [
            *[root_to_public_input(root) for root in self.merkle_roots],
            compute_nullifier(self.secret, parameters.nullifier_suffix),
            self.amount,
            self.chain_id,
            int.from_bytes(self.recipient, "big"),
            compute_locker_script_hash(self.locker_script, parameters.locker_script_bytes),
        ]

    def to_assignment(self, parameters: ClaimParameters) -> dict[str, Any]:
        """Return the assignment of every circuit input.

        Raises:
            ValueError: If the claim does not fit in the circuit described by `parameters`.
        """
        depth = len(self.merkle_proof)
        if not 1 <= depth <= parameters.merkle_depth:
            msg = f"Merkle proof of depth {depth} does not fit in a circuit of depth {parameters.merkle_depth}"
            raise ValueError(msg)
        if len(self.merkle_roots) != parameters.num_merkle_roots:
            msg = f"Expected {parameters.num_merkle_roots} Merkle roots: length: {len(self.merkle_roots)}"
            raise ValueError(msg)
        if len(self.transaction) > parameters.max_tx_bytes:
            msg = f"Transaction of {len(self.transaction)} bytes exceeds the maximum of {parameters.max_tx_bytes}"
            raise ValueError(msg)
        if len(self.locker_script) not in parameters.supported_script_lengths:
            msg = f"Unsupported locker script length: {len(self.locker_script)}"
            raise ValueError(msg)

        padded_transaction, num_blocks = pad_for_circuit(self.transaction, parameters.max_padded_bytes)
        zero_levels = parameters.merkle_depth - depth
        public_inputs = self.public_inputs(parameters)
        n_roots = parameters.num_merkle_roots

        return {
            "merkle_roots": public_inputs[:n_roots],
            "nullifier": public_inputs[n_roots],
            "amount": self.amount,
            "chain_id": self.chain_id,
            "recipient": public_inputs[n_roots + 3],
            "locker_script_hash": public_inputs[n_roots + 4],
            "secret": bytes_to_bits(self.secret),
            "locker_script": bytes_to_bits(pad_locker_script(self.locker_script, parameters.locker_script_bytes)),
            "locker_script_length": len(self.locker_script),
            "locker_output_byte_offset": self.locker_output_offset,
            "commitment_byte_offset": self.commitment_offset,
            "root_index": self.root_index,
            "merkle_proof": [bytes_to_bits(sibling) for sibling in self.merkle_proof] + [[0] * 256] * zero_levels,
            "merkle_path_indices": path_indices(self.tx_index, depth) + [0] * zero_levels,
            "merkle_depth": depth,
            "merkle_root_bits": [bytes_to_bits(root) for root in self.merkle_roots],
            "padded_transaction": padded_transaction,
            "num_blocks": num_blocks,
            "tx_id": bytes_to_bits(self.tx_id),
        }
