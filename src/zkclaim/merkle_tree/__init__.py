"""Merkle tree package.

`MerkleLevelStep` hashes a node with its sibling in the order given by a direction bit.
`MerkleHiddenRootVerifier` chains a fixed number of steps and proves that a leaf is included under
one of several candidate roots without revealing which.

Usage example:

    >>> from src.zkclaim.constraint_system.constraint_system import ConstraintSystem
    >>> from src.zkclaim.merkle_tree.merkle_tree import MerkleHiddenRootVerifier
    >>> cs = ConstraintSystem()
    >>> leaf = cs.private_input("leaf", 256)
    >>> siblings = cs.private_input("siblings", (3, 256))
    >>> directions = cs.private_input("directions", 3)
    >>> roots = cs.private_input("roots", (2, 256))
    >>> depth, root_index = cs.private_input("depth"), cs.private_input("root_index")
    >>> MerkleHiddenRootVerifier(3, 2).verify(cs, leaf, siblings, directions, depth, root_index, roots)
"""
