"""Phantom agent typed data for L1 actions.

L1 actions are not signed directly. The 32-byte action hash is wrapped into
an ``Agent`` struct and that struct is signed with EIP-712.
The exchange uses the wrapper to tell order flow signatures apart
from user-signed actions that use the same signature scheme.
"""

from dataclasses import dataclass

from hyperliquid_signing.constants import (
    L1_DOMAIN_CHAIN_ID,
    L1_DOMAIN_NAME,
    L1_DOMAIN_VERSION,
    MAINNET_SOURCE,
    TESTNET_SOURCE,
    ZERO_ADDRESS,
)
from hyperliquid_signing.eip_712 import EIP712_DOMAIN_FIELDS, TypedData

#: Field schema of the phantom agent struct
AGENT_FIELDS = (
    {"name": "source", "type": "string"},
    {"name": "connectionId", "type": "bytes32"},
)


@dataclass(frozen=True, slots=True)
class PhantomAgent:
    """Short-lived wrapper of an action hash."""

    #: ``a`` for mainnet, ``b`` for testnet
    source: str

    #: ``0x`` hex of the action hash
    connection_id: str

    def to_message(self) -> dict[str, str]:
        return {"source": self.source, "connectionId": self.connection_id}


def construct_phantom_agent(hash: bytes, is_mainnet: bool) -> PhantomAgent:
    """Wrap an action hash.

    :param hash:
        Output of :py:func:`~hyperliquid_signing.action_hash.action_hash`

    :param is_mainnet:
        Target network
    """
    return PhantomAgent(
        source=MAINNET_SOURCE if is_mainnet else TESTNET_SOURCE,
        connection_id="0x" + bytes(hash).hex(),
    )


def l1_payload(phantom_agent: PhantomAgent) -> TypedData:
    """Typed data signed for an L1 action."""
    return TypedData(
        domain={
            "name": L1_DOMAIN_NAME,
            "version": L1_DOMAIN_VERSION,
            "chainId": L1_DOMAIN_CHAIN_ID,
            "verifyingContract": ZERO_ADDRESS,
        },
        primary_type="Agent",
        types={
            "EIP712Domain": list(EIP712_DOMAIN_FIELDS),
            "Agent": list(AGENT_FIELDS),
        },
        message=phantom_agent.to_message(),
    )
