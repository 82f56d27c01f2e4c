import pytest
from zksnake.constant import BN254_SCALAR_FIELD
from tx_engine import hash256d

from src.zkclaim.witness.merkle_proof import (
    display_root_to_public_input,
    display_to_internal,
    internal_to_display,
    make_decoy_root,
    merkle_proof,
    merkle_root,
    path_indices,
    root_to_public_input,
    verify_merkle_proof,
)

# Block 100000
BLOCK_TX_IDS = [
    "8c14f0db3df150123e6f3dbbf30f8b955a8249b62ac1d1ff16284aefa3d06d87",
    "fff2525b8931402dd09222c50775608f75787bd2b87e56995a7bdd30f79702c4",
    "6359f0868171b1d194cbee1af2f16ea598ae8fad666d9b012c8ed2b79a236ec4",
    "e9a66845e05d5abc0ad04ec80f774a7e585c6e8db975962d069a522137b80c1d",
]
BLOCK_MERKLE_ROOT = "f3e94742aca4b5ef85488dc37c06c3282295ffec960994b2c0d5ac2a25a95766"

TX_IDS = [hash256d(i.to_bytes(4, "little")) for i in range(9)]


def test_block_merkle_root():
    tx_ids = [display_to_internal(tx_id) for tx_id in BLOCK_TX_IDS]
    assert internal_to_display(merkle_root(tx_ids)) == BLOCK_MERKLE_ROOT


def test_small_trees():
    a, b, c = TX_IDS[:3]
    assert merkle_root([a]) == a
    assert merkle_root([a, b]) == hash256d(a + b)
    assert merkle_root([a, b, c]) == hash256d(hash256d(a + b) + hash256d(c + c))
    assert merkle_proof([a], 0) == []
    with pytest.raises(ValueError):
        merkle_root([])


@pytest.mark.parametrize("n_transactions", range(1, 10))
def test_proofs_for_every_index(n_transactions):
    tx_ids = TX_IDS[:n_transactions]
    root = merkle_root(tx_ids)
    depth = (n_transactions - 1).bit_length()
    for index in range(n_transactions):
        proof = merkle_proof(tx_ids, index)
        assert len(proof) == depth
        assert verify_merkle_proof(tx_ids[index], proof, index, root)
        assert not verify_merkle_proof(tx_ids[index], proof, index, make_decoy_root(root))
    with pytest.raises(ValueError):
        merkle_proof(tx_ids, n_transactions)


def test_path_indices():
    assert path_indices(5, 3) == [1, 0, 1]
    assert path_indices(5, 4) == [1, 0, 1, 0]
    assert path_indices(0, 2) == [0, 0]
    with pytest.raises(ValueError):
        path_indices(8, 3)


def test_public_inputs_of_roots():
    internal = display_to_internal(BLOCK_MERKLE_ROOT)
    assert internal_to_display(internal) == BLOCK_MERKLE_ROOT
    expected = (int.from_bytes(internal, "big") >> 2) % BN254_SCALAR_FIELD
    assert root_to_public_input(internal) == expected
    assert display_root_to_public_input(BLOCK_MERKLE_ROOT) == expected


def test_decoy_root():
    root = TX_IDS[0]
    decoy = make_decoy_root(root)
    assert decoy != root
    assert decoy[1:] == root[1:]
    assert decoy[0] ^ root[0] == 1
    assert make_decoy_root(decoy) == root
