"""Native computation of the claim circuit inputs.

The helpers in this package replay, outside the circuit, what the prover needs to know: byte
offsets inside the transaction, Merkle proofs, padded transaction bits and the expected public
inputs. None of them is a substitute for a constraint.
"""
