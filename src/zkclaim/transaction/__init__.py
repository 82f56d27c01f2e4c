"""Verification of the outputs of a serialised transaction inside the constraint system."""
