import hashlib

import pytest
from zksnake.constant import BN254_SCALAR_FIELD

from src.zkclaim.witness.deposit import (
    compute_commitment,
    compute_locker_script_hash,
    compute_nullifier,
    create_deposit_transaction,
    locker_script,
    pad_locker_script,
)

SECRET = bytes(range(1, 33))
RECIPIENT = bytes.fromhex("1111111111111111111111111111111111111111")


def test_commitment():
    commitment = compute_commitment(SECRET, 100000000, 137, RECIPIENT)
    preimage = SECRET + bytes.fromhex("0000000005f5e100") + bytes.fromhex("0089") + RECIPIENT
    assert len(preimage) == 62
    assert commitment == hashlib.sha256(preimage).digest()


@pytest.mark.parametrize(("secret", "recipient"), [(SECRET[:31], RECIPIENT), (SECRET, RECIPIENT + b"\x00")])
def test_commitment_sizes(secret, recipient):
    with pytest.raises(ValueError):
        compute_commitment(secret, 1, 1, recipient)


def test_nullifier_and_locker_hash():
    digest = hashlib.sha256(SECRET + b"\x01").digest()
    assert compute_nullifier(SECRET) == (int.from_bytes(digest, "big") >> 2) % BN254_SCALAR_FIELD
    assert compute_nullifier(SECRET, 0x02) != compute_nullifier(SECRET)

    script = bytes.fromhex("0014") + bytes(range(20))
    digest = hashlib.sha256(script + bytes(43)).digest()
    assert compute_locker_script_hash(script) == (int.from_bytes(digest, "big") >> 2) % BN254_SCALAR_FIELD
    assert pad_locker_script(script) == script + bytes(43)
    with pytest.raises(ValueError):
        pad_locker_script(bytes(66))


@pytest.mark.parametrize(
    ("script_type", "payload", "prefix", "suffix", "length"),
    [
        ("p2wpkh", bytes(20), "0014", "", 22),
        ("p2sh", bytes(20), "a914", "87", 23),
        ("p2pkh", bytes(20), "76a914", "88ac", 25),
        ("p2wsh", bytes(32), "0020", "", 34),
        ("p2tr", bytes(32), "5120", "", 34),
    ],
)
def test_locker_scripts(script_type, payload, prefix, suffix, length):
    script = locker_script(script_type, payload).raw_serialize()
    assert len(script) == length
    assert script == bytes.fromhex(prefix) + payload + bytes.fromhex(suffix)


@pytest.mark.parametrize(("script_type", "payload"), [("p2pk", bytes(33)), ("p2wpkh", bytes(32)), ("p2tr", bytes(20))])
def test_locker_script_errors(script_type, payload):
    with pytest.raises(ValueError):
        locker_script(script_type, payload)


def test_deposit_transaction_layout():
    commitment = compute_commitment(SECRET, 100000000, 137, RECIPIENT)
    tx = create_deposit_transaction(locker_script("p2wpkh", bytes(range(20))), 100000000, commitment).serialize()
    assert tx[:4] == bytes.fromhex("02000000")
    assert tx[4] == 1
    assert tx[46] == 2
    assert tx[47:55] == (100000000).to_bytes(8, "little")
    assert tx[55] == 22
    assert tx[78:86] == bytes(8)
    assert tx[86:89] == bytes.fromhex("226a20")
    assert tx[89:121] == commitment
    assert tx[-4:] == bytes(4)
