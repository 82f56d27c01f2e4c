from copy import copy
from dataclasses import dataclass

from src.zkclaim.transaction.tx_output_verifier import SUPPORTED_SCRIPT_LENGTHS


@dataclass
class ClaimParameters:
    """Compile-time sizes of the claim circuit.

    Attributes:
        max_tx_bytes (int): Maximum size of the transaction without witness data.
        locker_script_bytes (int): Size of the zero-padded locker script array.
        merkle_depth (int): Maximum depth of the Merkle tree.
        num_merkle_roots (int): Number of candidate Merkle roots.
        supported_script_lengths (tuple[int, ...]): Allowed locker script lengths.
        nullifier_suffix (int): Byte appended to the secret to derive the nullifier.
    """

    max_tx_bytes: int = 512
    locker_script_bytes: int = 65
    merkle_depth: int = 12
    num_merkle_roots: int = 2
    supported_script_lengths: tuple[int, ...] = SUPPORTED_SCRIPT_LENGTHS
    nullifier_suffix: int = 0x01

    def __post_init__(self):
        self.validate()

    def validate(self):
        """Check that the sizes define a circuit that can be built.

        Raises:
            ValueError: If a size is not positive, a supported script length does not fit in the
                locker script array, or the nullifier suffix is not a byte.
        """
        for name in ("max_tx_bytes", "locker_script_bytes", "merkle_depth", "num_merkle_roots"):
            if getattr(self, name) < 1:
                msg = f"{name} must be positive: {getattr(self, name)}"
                raise ValueError(msg)
        if any(not 0 < length <= self.locker_script_bytes for length in self.supported_script_lengths):
            msg = f"Script lengths {self.supported_script_lengths} do not fit in {self.locker_script_bytes} bytes"
            raise ValueError(msg)
        if not 0 <= self.nullifier_suffix <= 0xFF:
            msg = f"The nullifier suffix must be a byte: {self.nullifier_suffix}"
            raise ValueError(msg)

    @property
    def max_padded_bits(self) -> int:
        """Size in bits of the padded transaction: room for the SHA-256 padding, rounded to blocks."""
        return ((self.max_tx_bytes * 8 + 64) // 512 + 1) * 512

    @property
    def max_padded_bytes(self) -> int:
        return self.max_padded_bits // 8

    @property
    def max_blocks(self) -> int:
        return self.max_padded_bits // 512

    @property
    def locker_script_bits(self) -> int:
        return self.locker_script_bytes * 8

    def with_overrides(self, **overrides):
        new_params = copy(self)
        for key, value in overrides.items():
            if hasattr(new_params, key):
                setattr(new_params, key, value)
            else:
                msg = f"ClaimParameters has no attribute '{key}'"
                raise AttributeError(msg)
        new_params.validate()
        return new_params


default_parameters = ClaimParameters()
