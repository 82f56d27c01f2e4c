"""Top-level claim circuit and its parameters."""
