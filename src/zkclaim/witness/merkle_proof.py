"""Bitcoin Merkle trees.

Hashes are handled in internal byte order, the order in which they are serialised and hashed.
Block explorers display transaction ids and Merkle roots with their bytes reversed.
"""

from zksnake.constant import BN254_SCALAR_FIELD
from tx_engine import hash256d

from src.zkclaim.util.utility_functions import hash_to_field_element


def internal_to_display(digest: bytes) -> str:
    return digest[::-1].hex()


def display_to_internal(digest: str) -> bytes:
    return bytes.fromhex(digest)[::-1]


def merkle_parent(left: bytes, right: bytes) -> bytes:
    return hash256d(left + right)


def _next_level(level: list[bytes]) -> list[bytes]:
    if len(level) % 2 == 1:
        level = [*level, level[-1]]
    return [merkle_parent(level[i], level[i + 1]) for i in range(0, len(level), 2)]


def merkle_root(tx_ids: list[bytes]) -> bytes:
    """Return the Merkle root of a list of transaction ids, duplicating the last node of odd levels.

    Example:
        >>> tx_id = bytes(32)
        >>> merkle_root([tx_id]) == tx_id
        True
    """
    if not tx_ids:
        msg = "Cannot compute the Merkle root of an empty list"
        raise ValueError(msg)
    level = list(tx_ids)
    while len(level) > 1:
        level = _next_level(level)
    return level[0]


def merkle_proof(tx_ids: list[bytes], index: int) -> list[bytes]:
    """Return the siblings on the path from `tx_ids[index]` to the root, leaf level first."""
    if not 0 <= index < len(tx_ids):
        msg = f"Index {index} out of range for {len(tx_ids)} transactions"
        raise ValueError(msg)
    proof = []
    level = list(tx_ids)
    while len(level) > 1:
        padded = level + [level[-1]] if len(level) % 2 == 1 else level
        proof.append(padded[index ^ 1])
        level = _next_level(level)
        index //= 2
    return proof


def path_indices(index: int, depth: int) -> list[int]:
    """Return the direction bits of the path of leaf `index`, leaf level first.

    Bit `k` is 1 if the node at level `k` is a right child.

    Example:
        >>> path_indices(5, 4)
        [1, 0, 1, 0]
    """
    if index >= 1 << depth:
        msg = f"Index {index} does not fit in a tree of depth {depth}"
        raise ValueError(msg)
    return [(index >> k) & 1 for k in range(depth)]


def verify_merkle_proof(leaf: bytes, proof: list[bytes], index: int, root: bytes) -> bool:
    current = leaf
    for k, sibling in enumerate(proof):
        current = merkle_parent(sibling, current) if (index >> k) & 1 else merkle_parent(current, sibling)
    return current == root


def root_to_public_input(root: bytes) -> int:
    """Return the public input of a Merkle root in internal byte order: its leading 254 bits."""
    return hash_to_field_element(root)


def display_root_to_public_input(root: str) -> int:
    """Convert a root in display order, as stored by the relay contract, to its public input.

    Equals `(int(internal) >> 2) % p`, where `internal` is the root in internal byte order read as
    a big-endian integer.
    """
    return (int.from_bytes(display_to_internal(root), "big") >> 2) % BN254_SCALAR_FIELD


def make_decoy_root(root: bytes) -> bytes:
    """Return a root differing from `root` in the least significant bit of its first byte."""
    return bytes([root[0] ^ 1]) + root[1:]
