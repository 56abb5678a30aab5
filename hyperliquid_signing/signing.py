"""Sign Hyperliquid actions.

Two signing paths share the same EIP-712 signer, :py:func:`sign_inner`:

- L1 actions (orders, cancels, leverage): action hash → phantom agent →
  ``Exchange`` domain typed data, see :py:func:`sign_l1_action`

- User-signed actions (transfers, approvals): the action itself is the
  ``HyperliquidSignTransaction`` domain typed data,
  see :py:func:`sign_user_signed_action`

The signature is ``(r, s, v)`` with ``v`` in ``{27, 28}``. ``eth_account`` uses
RFC 6979 deterministic nonces, so signing the same data twice with the same key
gives the same signature.

Example::

    from eth_account import Account
    from hyperliquid_signing.actions import UpdateLeverageAction
    from hyperliquid_signing.signing import sign_l1_action

    wallet = Account.from_key(private_key)
    action = UpdateLeverageAction(asset=0, is_cross=True, leverage=5)
    signature = sign_l1_action(wallet, action, None, nonce=1_700_000_000_000, expires_after=None, is_mainnet=False)

The private key is never logged.
"""

import logging
from typing import Any, Mapping

from eth_account import Account
from eth_account.messages import SignableMessage
from eth_account.signers.local import LocalAccount
from eth_typing import HexAddress

from hyperliquid_signing.action_hash import action_hash, to_wire_action
from hyperliquid_signing.actions import Action, UserSignedAction
from hyperliquid_signing.agent import construct_phantom_agent, l1_payload
from hyperliquid_signing.compat import sign_hash_compat
from hyperliquid_signing.constants import DEFAULT_SIGNATURE_CHAIN_ID
from hyperliquid_signing.eip_712 import Signature, TypedData, eip712_encode, fast_keccak
from hyperliquid_signing.exceptions import SchemaError, SigningError
from hyperliquid_signing.user_signed import (
    APPROVE_AGENT_SIGN_TYPES,
    APPROVE_BUILDER_FEE_SIGN_TYPES,
    CONVERT_TO_MULTI_SIG_USER_SIGN_TYPES,
    MULTI_SIG_ENVELOPE_SIGN_TYPES,
    SEND_ASSET_SIGN_TYPES,
    SPOT_TRANSFER_SIGN_TYPES,
    TOKEN_DELEGATE_TYPES,
    USD_CLASS_TRANSFER_SIGN_TYPES,
    USD_SEND_SIGN_TYPES,
    WITHDRAW_SIGN_TYPES,
    UserSignedSchema,
    add_multi_sig_types,
    prepare_user_signed_action,
    user_signed_payload,
)

logger = logging.getLogger(__name__)

#: Anything we accept as signing key material
Wallet = LocalAccount | str | bytes


def get_local_account(wallet: Wallet) -> LocalAccount:
    """Resolve signing key material to a local account.

    :param wallet:
        ``LocalAccount``, hex private key or 32 raw key bytes

    :raise SigningError:
        Invalid key material. The key itself is not included in the message.
    """
    if isinstance(wallet, LocalAccount):
        return wallet

    try:
        return Account.from_key(wallet)
    except Exception as e:
        # eth_keys and hexbytes raise a mix of ValueError, TypeError and ValidationError
        raise SigningError(f"Invalid private key material ({type(e).__name__})") from None


def sign_inner(wallet: Wallet, typed_data: TypedData) -> Signature:
    """Sign EIP-712 typed data.

    ``keccak256(0x19 0x01 ‖ domainSeparator ‖ hashStruct(message))``

    :raise SigningError:
        Invalid key or a field that does not encode as its declared type
    """
    account = get_local_account(wallet)
    digest = fast_keccak(b"".join(eip712_encode(typed_data.to_dict())))

    logger.debug("Signing %s with %s", typed_data.primary_type, account.address)

    signed = sign_hash_compat(account, digest)
    return Signature(
        r=f"0x{signed.r:064x}",
        s=f"0x{signed.s:064x}",
        v=signed.v,
    )


def recover_signer(typed_data: TypedData, signature: Signature) -> HexAddress:
    """Recover the address that produced a signature.

    :return:
        Checksummed address
    """
    _, domain_separator, message_hash = eip712_encode(typed_data.to_dict())
    signable = SignableMessage(version=b"\x01", header=domain_separator, body=message_hash)
    return Account.recover_message(
        signable,
        vrs=(signature.v, int(signature.r, 16), int(signature.s, 16)),
    )


def sign_l1_action(
    wallet: Wallet,
    action: Action | Mapping[str, Any] | list,
    active_pool: HexAddress | str | None,
    nonce: int,
    expires_after: int | None,
    is_mainnet: bool,
) -> Signature:
    """Sign an L1 action through the phantom agent.

    :param action:
        L1 action dataclass or wire mapping

    :param active_pool:
        Vault or sub-account address, or ``None``

    :param nonce:
        Millisecond timestamp

    :param expires_after:
        Optional expiry timestamp

    :param is_mainnet:
        Target network
    """
    hash = action_hash(action, active_pool, nonce, expires_after)
    phantom_agent = construct_phantom_agent(hash, is_mainnet)
    return sign_inner(wallet, l1_payload(phantom_agent))


def sign_user_signed_action(
    wallet: Wallet,
    action: UserSignedAction | Mapping[str, Any],
    payload_types: list[dict[str, str]],
    primary_type: str,
    is_mainnet: bool,
    signature_chain_id: str = DEFAULT_SIGNATURE_CHAIN_ID,
) -> Signature:
    """Sign a user-signed action.

    ``signatureChainId`` and ``hyperliquidChain`` are injected into a copy
    of the action before hashing. Send the same injected action to the exchange,
    see :py:func:`~hyperliquid_signing.user_signed.prepare_user_signed_action`.
    """
    prepared = prepare_user_signed_action(to_wire_action(action), is_mainnet, signature_chain_id)
    return sign_inner(wallet, user_signed_payload(primary_type, payload_types, prepared))


def _sign_with_schema(wallet: Wallet, action, schema: UserSignedSchema, is_mainnet: bool) -> Signature:
    return sign_user_signed_action(wallet, action, schema.to_eip712_fields(), schema.primary_type, is_mainnet)


def sign_user_signed(wallet: Wallet, action: UserSignedAction, is_mainnet: bool) -> Signature:
    """Sign any user-signed action dataclass with its registered schema."""
    return _sign_with_schema(wallet, action, action.get_schema(), is_mainnet)


def sign_usd_transfer_action(wallet: Wallet, action, is_mainnet: bool) -> Signature:
    return _sign_with_schema(wallet, action, USD_SEND_SIGN_TYPES, is_mainnet)


def sign_spot_transfer_action(wallet: Wallet, action, is_mainnet: bool) -> Signature:
    return _sign_with_schema(wallet, action, SPOT_TRANSFER_SIGN_TYPES, is_mainnet)


def sign_withdraw_from_bridge_action(wallet: Wallet, action, is_mainnet: bool) -> Signature:
    return _sign_with_schema(wallet, action, WITHDRAW_SIGN_TYPES, is_mainnet)


def sign_usd_class_transfer_action(wallet: Wallet, action, is_mainnet: bool) -> Signature:
    return _sign_with_schema(wallet, action, USD_CLASS_TRANSFER_SIGN_TYPES, is_mainnet)


def sign_send_asset_action(wallet: Wallet, action, is_mainnet: bool) -> Signature:
    return _sign_with_schema(wallet, action, SEND_ASSET_SIGN_TYPES, is_mainnet)


def sign_token_delegate_action(wallet: Wallet, action, is_mainnet: bool) -> Signature:
    return _sign_with_schema(wallet, action, TOKEN_DELEGATE_TYPES, is_mainnet)


def sign_agent(wallet: Wallet, action, is_mainnet: bool) -> Signature:
    return _sign_with_schema(wallet, action, APPROVE_AGENT_SIGN_TYPES, is_mainnet)


def sign_approve_builder_fee(wallet: Wallet, action, is_mainnet: bool) -> Signature:
    return _sign_with_schema(wallet, action, APPROVE_BUILDER_FEE_SIGN_TYPES, is_mainnet)


def sign_convert_to_multi_sig_user_action(wallet: Wallet, action, is_mainnet: bool) -> Signature:
    return _sign_with_schema(wallet, action, CONVERT_TO_MULTI_SIG_USER_SIGN_TYPES, is_mainnet)


def sign_multi_sig_l1_action_payload(
    wallet: Wallet,
    action: Action | Mapping[str, Any],
    is_mainnet: bool,
    vault_address: HexAddress | str | None,
    nonce: int,
    expires_after: int | None,
    payload_multi_sig_user: HexAddress | str,
    outer_signer: HexAddress | str,
) -> Signature:
    """Co-signer signature of an L1 action executed by a multi-sig account.

    The hashed envelope is ``[multi_sig_user, outer_signer, action]``, addresses lowercased.
    """
    envelope = [payload_multi_sig_user.lower(), outer_signer.lower(), to_wire_action(action)]
    return sign_l1_action(wallet, envelope, vault_address, nonce, expires_after, is_mainnet)


def sign_multi_sig_user_signed_action_payload(
    wallet: Wallet,
    action: UserSignedAction | Mapping[str, Any],
    is_mainnet: bool,
    payload_types: list[dict[str, str]],
    primary_type: str,
    payload_multi_sig_user: HexAddress | str,
    outer_signer: HexAddress | str,
) -> Signature:
    """Co-signer signature of a user-signed action executed by a multi-sig account.

    ``payloadMultiSigUser`` and ``outerSigner`` are added to both the message and the schema.
    """
    envelope = dict(to_wire_action(action))
    envelope["payloadMultiSigUser"] = payload_multi_sig_user.lower()
    envelope["outerSigner"] = outer_signer.lower()
    return sign_user_signed_action(
        wallet,
        envelope,
        add_multi_sig_types(payload_types),
        primary_type,
        is_mainnet,
    )


def sign_multi_sig_action(
    wallet: Wallet,
    action: Action | Mapping[str, Any],
    is_mainnet: bool,
    vault_address: HexAddress | str | None,
    nonce: int,
    expires_after: int | None,
) -> Signature:
    """Outer signer signature of a ``multiSig`` action.

    The action is hashed without its ``type`` key through the L1 action hasher,
    and the hash is signed in the ``SendMultiSig`` user-signed envelope.
    The envelope uses the ``signatureChainId`` of the action.

    :raise SchemaError:
        The action has no ``type`` key
    """
    action_without_tag = dict(to_wire_action(action))
    if "type" not in action_without_tag:
        raise SchemaError(f"multiSig action is missing the type key: {list(action_without_tag.keys())}")
    del action_without_tag["type"]
    multi_sig_action_hash = action_hash(action_without_tag, vault_address, nonce, expires_after)
    envelope = {
        "multiSigActionHash": multi_sig_action_hash,
        "nonce": nonce,
    }
    return sign_user_signed_action(
        wallet,
        envelope,
        MULTI_SIG_ENVELOPE_SIGN_TYPES.to_eip712_fields(),
        MULTI_SIG_ENVELOPE_SIGN_TYPES.primary_type,
        is_mainnet,
        action_without_tag.get("signatureChainId", DEFAULT_SIGNATURE_CHAIN_ID),
    )
