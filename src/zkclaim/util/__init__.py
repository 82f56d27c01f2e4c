"""Bit, byte and field element conversions and SHA-256 padding."""
