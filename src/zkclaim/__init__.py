"""zkclaim: A Python package for building the claim circuit of a private Bitcoin deposit bridge.

The `zkclaim` package builds a rank-1 constraint system over the BN254 scalar field proving that a
Bitcoin transaction carries a secret-derived commitment, pays a claimed amount to a claimed locking
script, and is included under one of a set of public Merkle roots, without revealing which one.
It also generates and checks witnesses for that system and exports it for a SNARK backend.

Usage example:
    Build the claim circuit and produce its public inputs for a deposit:

    >>> from src.zkclaim.claim.claim_circuit import ClaimCircuit
    >>> from src.zkclaim.claim.claim_parameters import ClaimParameters
    >>> from src.zkclaim.witness.claim_witness import ClaimWitness
    >>>
    >>> parameters = ClaimParameters(max_tx_bytes=128, merkle_depth=3)
    >>> circuit = ClaimCircuit(parameters)
    >>> claim_witness = ClaimWitness.from_transaction(...)
    >>> witness = circuit.solve(claim_witness.to_assignment(parameters))
    >>> circuit.public_inputs(witness)

Modules:
    - constraint_system: linear combinations, constraint system and witness generation.
    - gadgets: bit primitives, one-hot selection, offset extraction and comparison.
    - hashing: in-circuit SHA-256 and variable-length double SHA-256.
    - merkle_tree: Merkle level step and hidden-root inclusion verification.
    - transaction: transaction output verification.
    - claim: parameters and composition of the top-level claim circuit.
    - witness: native helpers computing circuit inputs from deposits and transactions.
    - util: bit, byte and field conversions and SHA-256 padding.
"""
