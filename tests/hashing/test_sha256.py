import hashlib
from dataclasses import dataclass

import pytest
from tx_engine import hash256d

from src.zkclaim.constraint_system.constraint_system import ConstraintSystem
from src.zkclaim.gadgets.bits import assert_bits, constant_bits
from src.zkclaim.hashing.sha256 import compress, double_sha256, initial_state, padding_bits, sha256
from src.zkclaim.util.utility_functions import bits_to_bytes, bytes_to_bits, sha256_pad
from tests.util import save_circuit


@dataclass
class Sha256:
    filename = "sha256"
    test_data = {
        "test_sha256": [
            b"",
            b"abc",
            b"\x5a" * 55,
            b"\xa5" * 56,
            bytes(range(64)),
        ],
        "test_double_sha256": [
            bytes(range(64)),
            bytes.fromhex("01000000") + b"\x00" * 28,
        ],
    }


def hash_circuit(message_length: int, hash_function):
    cs = ConstraintSystem("sha256")
    message = cs.private_input("message", 8 * message_length)
    assert_bits(cs, message, "bit: message")
    return cs, hash_function(cs, message)


@pytest.mark.parametrize("message", Sha256.test_data["test_sha256"])
def test_sha256(message, save_to_json_folder):
    cs, digest = hash_circuit(len(message), sha256)
    witness = cs.solve({"message": bytes_to_bits(message)})
    assert bits_to_bytes(witness.evaluate_bits(digest)) == hashlib.sha256(message).digest()

    if save_to_json_folder:
        save_circuit(cs.statistics(), [], save_to_json_folder, Sha256.filename, f"sha256_{len(message)}")


@pytest.mark.parametrize("message", Sha256.test_data["test_double_sha256"])
def test_double_sha256(message):
    cs, digest = hash_circuit(len(message), double_sha256)
    witness = cs.solve({"message": bytes_to_bits(message)})
    assert bits_to_bytes(witness.evaluate_bits(digest)) == hash256d(message)


def test_constant_message_needs_no_constraints():
    cs = ConstraintSystem()
    digest = sha256(cs, constant_bits(b"abc"))
    assert len(cs.constraints) == 0
    assert bits_to_bytes([bit.constant_value() for bit in digest]) == hashlib.sha256(b"abc").digest()


def test_padding_bits():
    for length in [0, 3, 55, 56, 64]:
        message = bytes(length)
        padding = bits_to_bytes([bit.constant_value() for bit in padding_bits(8 * length)])
        assert message + padding == sha256_pad(message)
    with pytest.raises(ValueError):
        padding_bits(7)


def test_compress_sizes():
    cs = ConstraintSystem()
    with pytest.raises(ValueError):
        compress(cs, initial_state(), constant_bits(bytes(63)))
    with pytest.raises(ValueError):
        compress(cs, initial_state()[:7], constant_bits(bytes(64)))
