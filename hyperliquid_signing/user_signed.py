"""Typed data for directly user-signed actions.

Transfers, withdrawals, approvals, delegation and multi-sig actions are not
hashed through the phantom agent. The user signs them as EIP-712 structs
in the ``HyperliquidSignTransaction`` domain, so wallets can show their content.

Each action kind has a fixed, ordered field schema in
:py:data:`USER_SIGNED_ACTION_SCHEMAS`. Before hashing, two fields are injected
into the action:

- ``signatureChainId``: the chain id used in the EIP-712 domain, as hex
- ``hyperliquidChain``: ``Mainnet`` or ``Testnet``

See https://hyperliquid.gitbook.io/hyperliquid-docs/for-developers/api/signing
"""

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Mapping

from hyperliquid_signing.constants import (
    DEFAULT_SIGNATURE_CHAIN_ID,
    MAINNET_CHAIN_NAME,
    TESTNET_CHAIN_NAME,
    USER_SIGNED_DOMAIN_NAME,
    USER_SIGNED_DOMAIN_VERSION,
    ZERO_ADDRESS,
)
from hyperliquid_signing.eip_712 import EIP712_DOMAIN_FIELDS, TypedData
from hyperliquid_signing.exceptions import SchemaError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class UserSignedSchema:
    """EIP-712 struct of one user-signed action kind."""

    #: E.g. ``HyperliquidTransaction:UsdSend``
    primary_type: str

    #: Ordered ``(name, type)`` pairs
    fields: tuple[tuple[str, str], ...]

    def to_eip712_fields(self) -> list[dict[str, str]]:
        return [{"name": name, "type": typ} for name, typ in self.fields]

    @property
    def field_names(self) -> tuple[str, ...]:
        return tuple(name for name, _ in self.fields)


USD_SEND_SIGN_TYPES = UserSignedSchema(
    "HyperliquidTransaction:UsdSend",
    (
        ("hyperliquidChain", "string"),
        ("destination", "string"),
        ("amount", "string"),
        ("time", "uint64"),
    ),
)

SPOT_TRANSFER_SIGN_TYPES = UserSignedSchema(
    "HyperliquidTransaction:SpotSend",
    (
        ("hyperliquidChain", "string"),
        ("destination", "string"),
        ("token", "string"),
        ("amount", "string"),
        ("time", "uint64"),
    ),
)

WITHDRAW_SIGN_TYPES = UserSignedSchema(
    "HyperliquidTransaction:Withdraw",
    (
        ("hyperliquidChain", "string"),
        ("destination", "string"),
        ("amount", "string"),
        ("time", "uint64"),
    ),
)

USD_CLASS_TRANSFER_SIGN_TYPES = UserSignedSchema(
    "HyperliquidTransaction:UsdClassTransfer",
    (
        ("hyperliquidChain", "string"),
        ("amount", "string"),
        ("toPerp", "bool"),
        ("nonce", "uint64"),
    ),
)

SEND_ASSET_SIGN_TYPES = UserSignedSchema(
    "HyperliquidTransaction:SendAsset",
    (
        ("hyperliquidChain", "string"),
        ("destination", "string"),
        ("sourceDex", "string"),
        ("destinationDex", "string"),
        ("token", "string"),
        ("amount", "string"),
        ("fromSubAccount", "string"),
        ("nonce", "uint64"),
    ),
)

TOKEN_DELEGATE_TYPES = UserSignedSchema(
    "HyperliquidTransaction:TokenDelegate",
    (
        ("hyperliquidChain", "string"),
        ("validator", "address"),
        ("wei", "uint64"),
        ("isUndelegate", "bool"),
        ("nonce", "uint64"),
    ),
)

APPROVE_AGENT_SIGN_TYPES = UserSignedSchema(
    "HyperliquidTransaction:ApproveAgent",
    (
        ("hyperliquidChain", "string"),
        ("agentAddress", "address"),
        ("agentName", "string"),
        ("nonce", "uint64"),
    ),
)

APPROVE_BUILDER_FEE_SIGN_TYPES = UserSignedSchema(
    "HyperliquidTransaction:ApproveBuilderFee",
    (
        ("hyperliquidChain", "string"),
        ("maxFeeRate", "string"),
        ("builder", "address"),
        ("nonce", "uint64"),
    ),
)

CONVERT_TO_MULTI_SIG_USER_SIGN_TYPES = UserSignedSchema(
    "HyperliquidTransaction:ConvertToMultiSigUser",
    (
        ("hyperliquidChain", "string"),
        ("signers", "string"),
        ("nonce", "uint64"),
    ),
)

MULTI_SIG_ENVELOPE_SIGN_TYPES = UserSignedSchema(
    "HyperliquidTransaction:SendMultiSig",
    (
        ("hyperliquidChain", "string"),
        ("multiSigActionHash", "bytes32"),
        ("nonce", "uint64"),
    ),
)

#: Action type tag -> schema.
#:
#: Read-only. ``multiSig`` maps to the envelope that the outer signer signs.
USER_SIGNED_ACTION_SCHEMAS: Mapping[str, UserSignedSchema] = MappingProxyType(
    {
        "usdSend": USD_SEND_SIGN_TYPES,
        "spotSend": SPOT_TRANSFER_SIGN_TYPES,
        "withdraw3": WITHDRAW_SIGN_TYPES,
        "usdClassTransfer": USD_CLASS_TRANSFER_SIGN_TYPES,
        "sendAsset": SEND_ASSET_SIGN_TYPES,
        "tokenDelegate": TOKEN_DELEGATE_TYPES,
        "approveAgent": APPROVE_AGENT_SIGN_TYPES,
        "approveBuilderFee": APPROVE_BUILDER_FEE_SIGN_TYPES,
        "convertToMultiSigUser": CONVERT_TO_MULTI_SIG_USER_SIGN_TYPES,
        "multiSig": MULTI_SIG_ENVELOPE_SIGN_TYPES,
    }
)


def get_user_signed_schema(action_type: str) -> UserSignedSchema:
    """Look up the schema of a user-signed action kind.

    :raise SchemaError:
        Not a user-signed action type
    """
    try:
        return USER_SIGNED_ACTION_SCHEMAS[action_type]
    except KeyError as e:
        raise SchemaError(f"Not a user-signed action type: {action_type}") from e


def get_hyperliquid_chain(is_mainnet: bool) -> str:
    return MAINNET_CHAIN_NAME if is_mainnet else TESTNET_CHAIN_NAME


def prepare_user_signed_action(
    action: Mapping[str, Any],
    is_mainnet: bool,
    signature_chain_id: str = DEFAULT_SIGNATURE_CHAIN_ID,
) -> dict[str, Any]:
    """Inject ``signatureChainId`` and ``hyperliquidChain`` into an action.

    The input mapping is not modified.

    :return:
        New mapping. ``type`` first if present, then the two injected fields,
        then the remaining action fields in their original order.
    """
    prepared = {}
    if "type" in action:
        prepared["type"] = action["type"]
    prepared["signatureChainId"] = signature_chain_id
    prepared["hyperliquidChain"] = get_hyperliquid_chain(is_mainnet)
    for key, value in action.items():
        if key not in prepared:
            prepared[key] = value
    return prepared


def parse_signature_chain_id(action: Mapping[str, Any]) -> int:
    """Read the EIP-712 domain chain id from the action.

    :raise SchemaError:
        ``signatureChainId`` missing or not an integer string
    """
    chain_id = action.get("signatureChainId")
    if not isinstance(chain_id, str):
        raise SchemaError(f"signatureChainId not found or not a string: {chain_id!r}")
    try:
        return int(chain_id, 0)
    except ValueError as e:
        raise SchemaError(f"signatureChainId is not parseable: {chain_id!r}") from e


def user_signed_payload(
    primary_type: str,
    payload_types: list[dict[str, str]],
    action: Mapping[str, Any],
) -> TypedData:
    """Build EIP-712 typed data for a user-signed action.

    :param primary_type:
        E.g. ``HyperliquidTransaction:UsdSend``

    :param payload_types:
        Ordered field schema of the primary type

    :param action:
        Action with ``signatureChainId`` and ``hyperliquidChain`` already set,
        see :py:func:`prepare_user_signed_action`

    :raise SchemaError:
        ``signatureChainId`` missing or unparseable
    """
    chain_id = parse_signature_chain_id(action)
    logger.debug("Building user-signed payload %s, signature chain id %d", primary_type, chain_id)
    return TypedData(
        domain={
            "name": USER_SIGNED_DOMAIN_NAME,
            "version": USER_SIGNED_DOMAIN_VERSION,
            "chainId": chain_id,
            "verifyingContract": ZERO_ADDRESS,
        },
        primary_type=primary_type,
        types={
            "EIP712Domain": list(EIP712_DOMAIN_FIELDS),
            primary_type: list(payload_types),
        },
        message=dict(action),
    )


def add_multi_sig_types(payload_types: list[dict[str, str]]) -> list[dict[str, str]]:
    """Schema for a co-signer signature of a multi-sig user-signed action.

    ``payloadMultiSigUser`` and ``outerSigner`` are inserted right after ``hyperliquidChain``.
    """
    enriched = []
    inserted = False
    for field_def in payload_types:
        enriched.append(field_def)
        if field_def["name"] == "hyperliquidChain":
            enriched.append({"name": "payloadMultiSigUser", "type": "address"})
            enriched.append({"name": "outerSigner", "type": "address"})
            inserted = True

    if not inserted:
        raise SchemaError(f"Schema has no hyperliquidChain field: {payload_types}")

    return enriched
