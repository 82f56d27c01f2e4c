"""SHA-256 inside the constraint system.

- `sha256.sha256` and `sha256.double_sha256` hash messages whose length is fixed when the circuit is
    built (commitments, nullifiers, locker scripts, Merkle nodes).
- `double_hasher.VariableLengthDoubleHasher` hashes a padded message whose number of blocks is a
    private input (the deposit transaction).
"""
