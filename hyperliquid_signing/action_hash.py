"""Action hashing for L1 actions.

The hash signed through the phantom agent is computed over this byte stream:

.. code-block:: text

    msgpack(action)                      keys in insertion order, never sorted
    nonce                                8 bytes, big-endian, unsigned
    0x00                                 no vault
    0x01 + 20 address bytes              vault or sub-account set
    0x00 + 8 bytes big-endian expiry     only if expires-after is set

    action_hash = keccak256(stream)

The exchange computes the same hash from the action it receives,
so any difference in key order or number formatting produces a signature
for a different action.
"""

import logging
from typing import Any, Mapping

import msgpack
from eth_typing import HexAddress
from eth_utils import keccak

from hyperliquid_signing.actions import Action
from hyperliquid_signing.exceptions import SchemaError

logger = logging.getLogger(__name__)

#: Ethereum address length
ADDRESS_BYTES = 20

#: Maximum value of nonce and expiry, both encoded as uint64
UINT64_MAX = 2**64 - 1

#: Vault marker byte when no vault is attached
NO_VAULT_MARKER = b"\x00"

#: Vault marker byte preceding the 20 vault address bytes
VAULT_MARKER = b"\x01"

#: Byte preceding the 8 expiry bytes
EXPIRES_AFTER_MARKER = b"\x00"


def address_to_bytes(address: HexAddress | str) -> bytes:
    """Convert a ``0x`` address to its 20 raw bytes.

    :raise SchemaError:
        Not hex or not 20 bytes
    """
    digits = address[2:] if address.startswith("0x") else address
    try:
        raw = bytes.fromhex(digits)
    except ValueError as e:
        raise SchemaError(f"Address is not hex: {address!r}") from e
    if len(raw) != ADDRESS_BYTES:
        raise SchemaError(f"Address is not {ADDRESS_BYTES} bytes: {address!r}")
    return raw


def _uint64_to_bytes(name: str, value: int) -> bytes:
    if not isinstance(value, int) or isinstance(value, bool) or not (0 <= value <= UINT64_MAX):
        raise SchemaError(f"{name} must be an uint64: {value!r}")
    return value.to_bytes(8, "big")


def to_wire_action(action: Action | Mapping[str, Any] | list) -> Any:
    """Turn an action dataclass into its wire mapping.

    Wire mappings and envelopes (lists) pass through as is.
    """
    if isinstance(action, Action):
        return action.to_wire()
    return action


def serialise_action(action: Action | Mapping[str, Any] | list) -> bytes:
    """Canonical msgpack bytes of an action.

    Maps are written in their insertion order.
    """
    return msgpack.packb(to_wire_action(action))


def action_hash(
    action: Action | Mapping[str, Any] | list,
    vault_address: HexAddress | str | None,
    nonce: int,
    expires_after: int | None = None,
) -> bytes:
    """Compute the 32-byte hash of an L1 action.

    :param action:
        Action dataclass or an already built wire mapping

    :param vault_address:
        Vault or sub-account the action is executed for, or ``None``

    :param nonce:
        Millisecond timestamp, unique per signer

    :param expires_after:
        Optional millisecond timestamp after which the exchange rejects the action

    :return:
        Keccak-256 digest

    :raise SchemaError:
        Nonce or expiry out of uint64 range, bad vault address
    """
    data = serialise_action(action)
    data += _uint64_to_bytes("nonce", nonce)

    if vault_address is None:
        data += NO_VAULT_MARKER
    else:
        data += VAULT_MARKER + address_to_bytes(vault_address)

    if expires_after is not None:
        data += EXPIRES_AFTER_MARKER + _uint64_to_bytes("expires_after", expires_after)

    digest = keccak(data)
    logger.debug("Action hash %s for nonce %d, %d bytes hashed", digest.hex(), nonce, len(data))
    return digest
