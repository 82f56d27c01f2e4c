"""Constraint system over the BN254 scalar field, recorded and solved with zksnake.

Wires are combined into `LinearCombination`s; `ConstraintSystem` records constraints
`a * b = c` between them together with the hints that fill the wires in.
"""
