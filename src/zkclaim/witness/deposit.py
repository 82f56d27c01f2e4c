"""Deposit side of the bridge: commitments, nullifiers, locker scripts and deposit transactions."""

import hashlib

from tx_engine import Script, Tx, TxIn, TxOut, p2pkh_script

from src.zkclaim.util.utility_functions import hash_to_field_element

SECRET_BYTES = 32
RECIPIENT_BYTES = 20


def compute_commitment(secret: bytes, amount: int, chain_id: int, recipient: bytes) -> bytes:
    """Return `SHA256(secret || amount || chain_id || recipient)`.

    Args:
        secret (bytes): The 32-byte deposit secret.
        amount (int): Amount in satoshis, serialised as a big-endian 64-bit integer.
        chain_id (int): Destination chain id, serialised as a big-endian 16-bit integer.
        recipient (bytes): The 20-byte recipient address.

    Returns:
        The 32-byte commitment embedded in the deposit transaction.
    """
    if len(secret) != SECRET_BYTES:
        msg = f"The secret must have {SECRET_BYTES} bytes: length: {len(secret)}"
        raise ValueError(msg)
    if len(recipient) != RECIPIENT_BYTES:
        msg = f"The recipient must have {RECIPIENT_BYTES} bytes: length: {len(recipient)}"
        raise ValueError(msg)
    preimage = secret + amount.to_bytes(8, "big") + chain_id.to_bytes(2, "big") + recipient
    return hashlib.sha256(preimage).digest()


def compute_nullifier(secret: bytes, suffix: int = 0x01) -> int:
    """Return the nullifier of a deposit: the leading 254 bits of `SHA256(secret || suffix)`."""
    return hash_to_field_element(hashlib.sha256(secret + bytes([suffix])).digest())


def pad_locker_script(script: bytes, locker_script_bytes: int = 65) -> bytes:
    if len(script) > locker_script_bytes:
        msg = f"The locker script has {len(script)} bytes, more than {locker_script_bytes}"
        raise ValueError(msg)
    return script + b"\x00" * (locker_script_bytes - len(script))


def compute_locker_script_hash(script: bytes, locker_script_bytes: int = 65) -> int:
    """Return the leading 254 bits of the SHA-256 of the zero-padded locker script."""
    return hash_to_field_element(hashlib.sha256(pad_locker_script(script, locker_script_bytes)).digest())


def p2wpkh_script(public_key_hash: bytes) -> Script:
    """`OP_0 <20 bytes>`."""
    out = Script.parse_string("OP_0")
    out.append_pushdata(public_key_hash)
    return out


def p2sh_script(script_hash: bytes) -> Script:
    """`OP_HASH160 <20 bytes> OP_EQUAL`."""
    out = Script.parse_string("OP_HASH160")
    out.append_pushdata(script_hash)
    out += Script.parse_string("OP_EQUAL")
    return out


def p2wsh_script(script_hash: bytes) -> Script:
    """`OP_0 <32 bytes>`."""
    out = Script.parse_string("OP_0")
    out.append_pushdata(script_hash)
    return out


def p2tr_script(output_key: bytes) -> Script:
    """`OP_1 <32 bytes>`."""
    out = Script.parse_string("OP_1")
    out.append_pushdata(output_key)
    return out


def locker_script(script_type: str, payload: bytes) -> Script:
    """Build a standard locking script.

    Args:
        script_type (str): One of `p2wpkh`, `p2sh`, `p2pkh`, `p2wsh`, `p2tr`.
        payload (bytes): The hash (20 bytes for `p2wpkh`, `p2sh`, `p2pkh`; 32 bytes for `p2wsh`) or
            the taproot output key (32 bytes).

    Returns:
        The locking script.
    """
    expected_length = {"p2wpkh": 20, "p2sh": 20, "p2pkh": 20, "p2wsh": 32, "p2tr": 32}
    if script_type not in expected_length:
        msg = f"Unknown script type: {script_type}"
        raise ValueError(msg)
    if len(payload) != expected_length[script_type]:
        msg = f"A {script_type} script needs {expected_length[script_type]} bytes: length: {len(payload)}"
        raise ValueError(msg)

    match script_type:
        case "p2wpkh":
            return p2wpkh_script(payload)
        case "p2sh":
            return p2sh_script(payload)
        case "p2pkh":
            return p2pkh_script(payload)
        case "p2wsh":
            return p2wsh_script(payload)
        case "p2tr":
            return p2tr_script(payload)


def commitment_script(commitment: bytes) -> Script:
    """`OP_RETURN <32-byte commitment>`."""
    out = Script.parse_string("OP_RETURN")
    out.append_pushdata(commitment)
    return out


def create_deposit_transaction(
    locker: Script,
    amount: int,
    commitment: bytes,
    prev_tx: str = "00" * 32,
    prev_index: int = 0,
    version: int = 2,
) -> Tx:
    """Create an unsigned deposit transaction.

    The transaction spends `prev_tx:prev_index` and has two outputs: `amount` satoshis to the
    locker, then the commitment in an `OP_RETURN` output of zero value.

    Args:
        locker (Script): Locking script of the locker.
        amount (int): Amount in satoshis.
        commitment (bytes): The 32-byte deposit commitment.
        prev_tx (str): Id of the spent transaction.
        prev_index (int): Index of the spent output.
        version (int): Transaction version.

    Returns:
        The deposit transaction.
    """
    tx_in = TxIn(prev_tx=prev_tx, prev_index=prev_index, script=Script(), sequence=0xFFFFFFFF)
    tx_outs = [
        TxOut(amount=amount, script_pubkey=locker),
        TxOut(amount=0, script_pubkey=commitment_script(commitment)),
    ]
    return Tx(version=version, tx_ins=[tx_in], tx_outs=tx_outs, locktime=0)
