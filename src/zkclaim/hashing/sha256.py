"""SHA-256 as a constraint system.

A 32-bit word is a list of 32 proven bits, most significant bit first. Rotations and shifts are
free rewirings, boolean functions cost one multiplication per bit and modular additions are
computed on packed words and decomposed back into bits.
"""

import logging
from typing import TypeAlias

from src.zkclaim.constraint_system.constraint_system import ConstraintSystem
from src.zkclaim.constraint_system.linear_combination import ZERO, LinearCombination, linear_sum
from src.zkclaim.gadgets.bits import bits_to_num, constant_bits, num_to_bits, xor

logger = logging.getLogger(__name__)

BLOCK_BITS = 512
DIGEST_BITS = 256

IV = [
    0x6A09E667, 0xBB67AE85, 0x3C6EF372, 0xA54FF53A,
    0x510E527F, 0x9B05688C, 0x1F83D9AB, 0x5BE0CD19,
]  # fmt: skip

K = [
    0x428A2F98, 0x71374491, 0xB5C0FBCF, 0xE9B5DBA5, 0x3956C25B, 0x59F111F1, 0x923F82A4, 0xAB1C5ED5,
    0xD807AA98, 0x12835B01, 0x243185BE, 0x550C7DC3, 0x72BE5D74, 0x80DEB1FE, 0x9BDC06A7, 0xC19BF174,
    0xE49B69C1, 0xEFBE4786, 0x0FC19DC6, 0x240CA1CC, 0x2DE92C6F, 0x4A7484AA, 0x5CB0A9DC, 0x76F988DA,
    0x983E5152, 0xA831C66D, 0xB00327C8, 0xBF597FC7, 0xC6E00BF3, 0xD5A79147, 0x06CA6351, 0x14292967,
    0x27B70A85, 0x2E1B2138, 0x4D2C6DFC, 0x53380D13, 0x650A7354, 0x766A0ABB, 0x81C2C92E, 0x92722C85,
    0xA2BFE8A1, 0xA81A664B, 0xC24B8B70, 0xC76C51A3, 0xD192E819, 0xD6990624, 0xF40E3585, 0x106AA070,
    0x19A4C116, 0x1E376C08, 0x2748774C, 0x34B0BCB5, 0x391C0CB3, 0x4ED8AA4A, 0x5B9CCA4F, 0x682E6FF3,
    0x748F82EE, 0x78A5636F, 0x84C87814, 0x8CC70208, 0x90BEFFFA, 0xA4506CEB, 0xBEF9A3F7, 0xC67178F2,
]  # fmt: skip

Word: TypeAlias = list[LinearCombination]


def constant_word(value: int) -> Word:
    return constant_bits(value.to_bytes(4, "big"))


def initial_state() -> list[Word]:
    """Return the SHA-256 initial hash value as constant words."""
    return [constant_word(value) for value in IV]


def rotr(word: Word, n: int) -> Word:
    return word[-n:] + word[:-n]


def shr(word: Word, n: int) -> Word:
    return [ZERO] * n + word[:-n]


def xor_words(cs: ConstraintSystem, *words: Word) -> Word:
    out = words[0]
    for word in words[1:]:
        out = [xor(cs, a, b) for a, b in zip(out, word)]
    return out


def add_words(cs: ConstraintSystem, words: list[Word], label: str = "range: sha256 addition") -> Word:
    """Return the sum of `words` modulo `2^32`.

    The words are packed, added as field elements and the sum is decomposed into
    `32 + ceil(log2(len(words)))` bits, the carries being dropped.
    """
    total = linear_sum(bits_to_num(word) for word in words)
    n_bits = 32 + (len(words) - 1).bit_length()
    bits = num_to_bits(cs, total, n_bits, label)
    return list(reversed(bits[:32]))


def ch(cs: ConstraintSystem, e: Word, f: Word, g: Word) -> Word:
    """Return `(e & f) ^ (~e & g)`, computed bitwise as `g + e * (f - g)`."""
    return [z + cs.mul(x, y - z) for x, y, z in zip(e, f, g)]


def maj(cs: ConstraintSystem, a: Word, b: Word, c: Word) -> Word:
    """Return the bitwise majority of `a`, `b`, `c`, computed as `ab + c * (a ^ b)`."""
    out = []
    for x, y, z in zip(a, b, c):
        xy = cs.mul(x, y)
        out.append(xy + cs.mul(z, x + y - 2 * xy))
    return out


def big_sigma_0(cs: ConstraintSystem, word: Word) -> Word:
    return xor_words(cs, rotr(word, 2), rotr(word, 13), rotr(word, 22))


def big_sigma_1(cs: ConstraintSystem, word: Word) -> Word:
    return xor_words(cs, rotr(word, 6), rotr(word, 11), rotr(word, 25))


def small_sigma_0(cs: ConstraintSystem, word: Word) -> Word:
    return xor_words(cs, rotr(word, 7), rotr(word, 18), shr(word, 3))


def small_sigma_1(cs: ConstraintSystem, word: Word) -> Word:
    return xor_words(cs, rotr(word, 17), rotr(word, 19), shr(word, 10))


def compress(cs: ConstraintSystem, state: list[Word], block: list[LinearCombination]) -> list[Word]:
    """Apply the SHA-256 compression function to one 512-bit block.

    Args:
        cs (ConstraintSystem): The constraint system.
        state (list[Word]): The eight words of the chaining state.
        block (list[LinearCombination]): The 512 proven bits of the message block.

    Returns:
        The eight words of the new chaining state.
    """
    if len(state) != 8 or any(len(word) != 32 for word in state):
        msg = "The SHA-256 state must be made of eight 32-bit words"
        raise ValueError(msg)
    if len(block) != BLOCK_BITS:
        msg = f"A SHA-256 block must have {BLOCK_BITS} bits: length: {len(block)}"
        raise ValueError(msg)

    schedule = [block[32 * t : 32 * t + 32] for t in range(16)]
    for t in range(16, 64):
        schedule.append(
            add_words(
                cs,
                [
                    small_sigma_1(cs, schedule[t - 2]),
                    schedule[t - 7],
                    small_sigma_0(cs, schedule[t - 15]),
                    schedule[t - 16],
                ],
            )
        )

    a, b, c, d, e, f, g, h = state
    for t in range(64):
        s1 = big_sigma_1(cs, e)
        choice = ch(cs, e, f, g)
        s0 = big_sigma_0(cs, a)
        majority = maj(cs, a, b, c)
        round_constant = constant_word(K[t])
        new_e = add_words(cs, [d, h, s1, choice, round_constant, schedule[t]])
        new_a = add_words(cs, [h, s1, choice, round_constant, schedule[t], s0, majority])
        h, g, f, e, d, c, b, a = g, f, e, new_e, c, b, a, new_a

    return [add_words(cs, [old, new]) for old, new in zip(state, [a, b, c, d, e, f, g, h])]


def padding_bits(n_bits: int) -> list[LinearCombination]:
    """Return the constant SHA-256 padding of a message of `n_bits` bits."""
    if n_bits % 8 != 0:
        msg = f"Only byte-aligned messages are supported: length: {n_bits}"
        raise ValueError(msg)
    n_bytes = n_bits // 8
    return constant_bits(b"\x80" + b"\x00" * ((55 - n_bytes) % 64) + n_bits.to_bytes(8, "big"))


def sha256(cs: ConstraintSystem, bits: list[LinearCombination]) -> list[LinearCombination]:
    """Return the 256-bit SHA-256 digest of a fixed-length message.

    The message length is known when the circuit is built, so the padding is made of constants.

    Args:
        cs (ConstraintSystem): The constraint system.
        bits (list[LinearCombination]): The message, a byte-aligned array of proven bits.

    Returns:
        The digest as a big-endian bit array.
    """
    message = bits + padding_bits(len(bits))
    n_constraints = len(cs.constraints)
    state = initial_state()
    for i in range(0, len(message), BLOCK_BITS):
        state = compress(cs, state, message[i : i + BLOCK_BITS])
    logger.debug(
        "sha256 of %d bits: %d blocks, %d constraints",
        len(bits),
        len(message) // BLOCK_BITS,
        len(cs.constraints) - n_constraints,
    )
    return [bit for word in state for bit in word]


def double_sha256(cs: ConstraintSystem, bits: list[LinearCombination]) -> list[LinearCombination]:
    """Return `SHA256(SHA256(bits))`, the Bitcoin `hash256`."""
    return sha256(cs, sha256(cs, bits))
