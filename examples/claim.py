import argparse
import json
import logging
import sys
from pathlib import Path

import tomllib

sys.path.append(str(Path(__file__).resolve().parent.parent))

from tx_engine import hash256d

from src.zkclaim.claim.claim_circuit import ClaimCircuit
from src.zkclaim.claim.claim_parameters import ClaimParameters
from src.zkclaim.witness.claim_witness import ClaimWitness
from src.zkclaim.witness.deposit import compute_commitment, create_deposit_transaction, locker_script
from src.zkclaim.witness.merkle_proof import (
    display_to_internal,
    internal_to_display,
    make_decoy_root,
    merkle_proof,
    merkle_root,
)

logger = logging.getLogger("claim")


def load_parameters(config: dict) -> ClaimParameters:
    """Read the `[parameters]` table, falling back to the production sizes."""
    overrides = config.get("parameters", {})
    if "supported_script_lengths" in overrides:
        overrides["supported_script_lengths"] = tuple(overrides["supported_script_lengths"])
    return ClaimParameters().with_overrides(**overrides)


def deposit_transaction(deposit: dict) -> tuple[bytes, bytes]:
    """Return the raw deposit transaction and the locker script.

    The transaction is read from `raw_tx` if present, otherwise a deposit transaction is built
    from the secret, the claim data and the locker.
    """
    locker = locker_script(deposit["locker_type"], bytes.fromhex(deposit["locker_payload"]))
    if "raw_tx" in deposit:
        return bytes.fromhex(deposit["raw_tx"]), locker.raw_serialize()

    commitment = compute_commitment(
        bytes.fromhex(deposit["secret"]),
        deposit["amount"],
        deposit["chain_id"],
        bytes.fromhex(deposit["recipient"]),
    )
    tx = create_deposit_transaction(
        locker,
        deposit["amount"],
        commitment,
        prev_tx=deposit.get("prev_tx", "00" * 32),
        prev_index=deposit.get("prev_index", 0),
    )
    return tx.serialize(), locker.raw_serialize()


def block_tx_ids(merkle: dict, tx_id: bytes) -> list[bytes]:
    """Return the transaction ids of the block, in internal byte order.

    If `tx_ids` is not given, a block of `n_transactions` placeholder ids is generated, with the
    deposit at `tx_index`.
    """
    if "tx_ids" in merkle:
        return [display_to_internal(t) for t in merkle["tx_ids"]]
    tx_ids = [hash256d(i.to_bytes(4, "little")) for i in range(merkle["n_transactions"])]
    tx_ids[merkle["tx_index"]] = tx_id
    return tx_ids


def candidate_roots(root: bytes, num_roots: int, root_index: int, decoys: list[str] | None) -> list[bytes]:
    if decoys is not None:
        roots = [display_to_internal(d) for d in decoys]
    else:
        roots = []
        decoy = root
        for _ in range(num_roots - 1):
            decoy = make_decoy_root(hash256d(decoy))
            roots.append(decoy)
    roots.insert(root_index, root)
    if len(roots) != num_roots:
        msg = f"Expected {num_roots - 1} decoy roots, got {len(roots) - 1}"
        raise ValueError(msg)
    return roots


def save_data_to_file(data: list, key: list[str], filename: str):
    data_dir = Path(__file__).resolve().parent / "outputs"
    data_dir.mkdir(parents=True, exist_ok=True)
    data_to_write = []
    for k, d in zip(key, data):
        data_to_write.append({k: d})
    with Path.open(data_dir / f"{filename}.json", "w") as f:
        f.write(json.dumps(data_to_write))


parser = argparse.ArgumentParser(
    description="Given a deposit and the Merkle data of its block, build the claim circuit, \
        generate the witness of the claim and save the public inputs."
)
parser.add_argument("--config", type=str, help="TOML configuration of the deposit and its block", required=True)
parser.add_argument("--r1cs", action="store_true", help="Also save the R1CS of the circuit (slow: compiled with zksnake)", default=False)
parser.add_argument("--log-level", type=str, default="INFO", help="Logging level")

if __name__ == "__main__":
    # Fetch cli arguments
    args = parser.parse_args()
    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(name)s %(levelname)s %(message)s")

    with Path.open(Path(args.config), "rb") as f:
        config = tomllib.load(f)
    parameters = load_parameters(config)
    deposit = config["deposit"]
    merkle = config["merkle"]

    # Deposit transaction and its block
    raw_tx, locker = deposit_transaction(deposit)
    tx_id = hash256d(raw_tx)
    tx_ids = block_tx_ids(merkle, tx_id)
    tx_index = tx_ids.index(tx_id)
    root = merkle_root(tx_ids)
    roots = candidate_roots(root, parameters.num_merkle_roots, merkle["root_index"], merkle.get("decoy_roots"))

    claim = ClaimWitness.from_transaction(
        secret=bytes.fromhex(deposit["secret"]),
        chain_id=deposit["chain_id"],
        recipient=bytes.fromhex(deposit["recipient"]),
        locker_script=locker,
        raw_tx=raw_tx,
        merkle_proof=merkle_proof(tx_ids, tx_index),
        tx_index=tx_index,
        merkle_roots=roots,
        root_index=merkle["root_index"],
        amount=deposit.get("amount"),
    )

    # Build the circuit and solve the claim
    circuit = ClaimCircuit(parameters)
    witness = circuit.solve(claim.to_assignment(parameters))
    public_inputs = circuit.public_inputs(witness)
    assert public_inputs == claim.public_inputs(parameters), "Circuit and native public inputs differ"

    # Save data to file
    save_data_to_file(
        [
            [str(x) for x in public_inputs],
            internal_to_display(claim.tx_id),
            [internal_to_display(r) for r in roots],
            claim.transaction.hex(),
            circuit.statistics(),
        ],
        ["public_inputs", "tx_id", "merkle_roots", "transaction", "statistics"],
        "claim",
    )
    if args.r1cs:
        with Path.open(Path(__file__).resolve().parent / "outputs" / "claim_r1cs.json", "w") as f:
            json.dump(circuit.to_r1cs(), f)
    logger.info("Claim for tx %s saved to examples/outputs", internal_to_display(claim.tx_id))
