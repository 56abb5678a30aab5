"""Exchange request payload.

The body posted to the ``/exchange`` endpoint by the transport layer:

.. code-block:: text

    {
        "action": <wire action>,
        "nonce": <uint64 milliseconds>,
        "signature": {"r": "0x...", "s": "0x...", "v": 27 | 28},
        "vaultAddress": "0x...",    # only with a vault, and not for usdClassTransfer or sendAsset
        "expiresAfter": <uint64>,   # only if configured
    }
"""

from typing import Any, Mapping

from eth_typing import HexAddress

from hyperliquid_signing.constants import VAULT_EXCLUDED_ACTION_TYPES
from hyperliquid_signing.eip_712 import Signature


def build_exchange_payload(
    action: Mapping[str, Any],
    nonce: int,
    signature: Signature,
    vault_address: HexAddress | str | None = None,
    expires_after: int | None = None,
) -> dict[str, Any]:
    """Assemble the signed request body.

    :param action:
        The exact wire action that was signed
    """
    payload = {
        "action": action,
        "nonce": nonce,
        "signature": signature.to_dict(),
    }

    if vault_address is not None and action.get("type") not in VAULT_EXCLUDED_ACTION_TYPES:
        payload["vaultAddress"] = vault_address

    if expires_after is not None:
        payload["expiresAfter"] = expires_after

    return payload
