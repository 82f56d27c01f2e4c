import json
from pathlib import Path

from tx_engine import hash256d

from src.zkclaim.witness.claim_witness import ClaimWitness
from src.zkclaim.witness.deposit import compute_commitment, create_deposit_transaction, locker_script
from src.zkclaim.witness.merkle_proof import make_decoy_root, merkle_proof, merkle_root

SECRET = bytes(range(1, 33))
RECIPIENT = bytes.fromhex("1111111111111111111111111111111111111111")


def save_circuit(statistics: dict, public_inputs: list[int], save_to_json_folder, filename, test_name):
    if save_to_json_folder:
        output_dir = Path("data") / save_to_json_folder / "circuits"
        output_dir.mkdir(parents=True, exist_ok=True)
        json_file = output_dir / f"{filename}.json"

        data = {}

        if json_file.exists():
            with json_file.open("r") as f:
                data = json.load(f)

        data[test_name] = {"statistics": statistics, "public_inputs": [str(x) for x in public_inputs]}

        with json_file.open("w") as f:
            json.dump(data, f, indent=4)


def deposit_scenario(
    amount: int = 100000000,
    chain_id: int = 137,
    script_type: str = "p2wpkh",
    n_transactions: int = 6,
    tx_index: int = 5,
    num_roots: int = 2,
    root_index: int = 1,
) -> ClaimWitness:
    """Return the claim witness of a deposit included in a block of `n_transactions` transactions."""
    payload = bytes(range(20)) if script_type in ("p2wpkh", "p2sh", "p2pkh") else bytes(range(32))
    locker = locker_script(script_type, payload)
    commitment = compute_commitment(SECRET, amount, chain_id, RECIPIENT)
    raw_tx = create_deposit_transaction(locker, amount, commitment, prev_tx="ab" * 32).serialize()

    tx_ids = [hash256d(i.to_bytes(4, "little")) for i in range(n_transactions)]
    tx_ids[tx_index] = hash256d(raw_tx)
    root = merkle_root(tx_ids)
    roots = [make_decoy_root(hash256d(bytes([r]) + root)) for r in range(num_roots)]
    roots[root_index] = root

    return ClaimWitness.from_transaction(
        secret=SECRET,
        chain_id=chain_id,
        recipient=RECIPIENT,
        locker_script=locker.raw_serialize(),
        raw_tx=raw_tx,
        merkle_proof=merkle_proof(tx_ids, tx_index),
        tx_index=tx_index,
        merkle_roots=roots,
        root_index=root_index,
    )
