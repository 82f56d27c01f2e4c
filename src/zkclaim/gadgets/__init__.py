"""Reusable circuit gadgets: bits, one-hot selection, offset extraction and bit-array comparison."""
