"""Exchange action types.

Every action the exchange accepts is one frozen dataclass here. The dataclass
is the typed, caller-facing form. :py:meth:`Action.to_wire` builds the wire
mapping with the exact key names and key order the exchange hashes.

There are two families:

- :py:class:`L1Action`: order flow. Hashed with msgpack and signed
  through a phantom agent, see :py:mod:`hyperliquid_signing.action_hash`.

- :py:class:`UserSignedAction`: transfers, approvals and other account
  changes, signed directly as EIP-712 structs,
  see :py:mod:`hyperliquid_signing.user_signed`.

Example::

    from hyperliquid_signing.actions import CancelAction, CancelWire

    action = CancelAction(cancels=(CancelWire(asset=4, oid=123),))
    assert action.to_wire() == {"type": "cancel", "cancels": [{"a": 4, "o": 123}]}
"""

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, ClassVar

from eth_typing import HexAddress

from hyperliquid_signing.constants import DEFAULT_SIGNATURE_CHAIN_ID
from hyperliquid_signing.eip_712 import Signature
from hyperliquid_signing.exceptions import SchemaError
from hyperliquid_signing.numeric import float_to_usd_int
from hyperliquid_signing.user_signed import UserSignedSchema, get_user_signed_schema
from hyperliquid_signing.wire import BuilderInfo, Cloid, Grouping, OrderWire, order_wires_to_order_action


class Action(ABC):
    """Base class of all exchange actions."""

    #: Value of the ``type`` key on the wire
    action_type: ClassVar[str]

    @abstractmethod
    def to_wire(self) -> dict[str, Any]:
        """Wire mapping in canonical key order."""


class L1Action(Action):
    """Order flow action, signed through the phantom agent."""


class UserSignedAction(Action):
    """Action signed directly by the user as an EIP-712 struct."""

    @classmethod
    def get_schema(cls) -> UserSignedSchema:
        return get_user_signed_schema(cls.action_type)

    @abstractmethod
    def get_field_values(self) -> dict[str, Any]:
        """Wire name -> value for every schema field except ``hyperliquidChain``."""

    def to_wire(self) -> dict[str, Any]:
        """Wire mapping without ``signatureChainId`` and ``hyperliquidChain``.

        The two are injected by :py:func:`~hyperliquid_signing.user_signed.prepare_user_signed_action`
        at signing time.
        """
        values = self.get_field_values()
        wire = {"type": self.action_type}
        for name in self.get_schema().field_names:
            if name == "hyperliquidChain":
                continue
            wire[name] = values[name]
        return wire


def _check_asset(asset: int):
    if not isinstance(asset, int) or isinstance(asset, bool) or asset < 0:
        raise SchemaError(f"Asset index must be a non-negative integer: {asset!r}")


def _oid_to_wire(oid: int | Cloid) -> int | str:
    if isinstance(oid, Cloid):
        return oid.to_raw()
    return oid


#
# L1 actions
#


@dataclass(frozen=True, slots=True)
class OrderAction(L1Action):
    """Place one or more orders."""

    action_type: ClassVar[str] = "order"

    orders: tuple[OrderWire, ...]
    grouping: Grouping = Grouping.na
    builder: BuilderInfo | None = None

    def to_wire(self) -> dict[str, Any]:
        return order_wires_to_order_action(list(self.orders), builder=self.builder, grouping=self.grouping)


@dataclass(frozen=True, slots=True)
class CancelWire:
    asset: int
    oid: int

    def __post_init__(self):
        _check_asset(self.asset)


@dataclass(frozen=True, slots=True)
class CancelAction(L1Action):
    """Cancel orders by exchange order id."""

    action_type: ClassVar[str] = "cancel"

    cancels: tuple[CancelWire, ...]

    def to_wire(self) -> dict[str, Any]:
        return {
            "type": self.action_type,
            "cancels": [{"a": c.asset, "o": c.oid} for c in self.cancels],
        }


@dataclass(frozen=True, slots=True)
class CancelByCloidWire:
    asset: int
    cloid: Cloid

    def __post_init__(self):
        _check_asset(self.asset)


@dataclass(frozen=True, slots=True)
class CancelByCloidAction(L1Action):
    """Cancel orders by client order id."""

    action_type: ClassVar[str] = "cancelByCloid"

    cancels: tuple[CancelByCloidWire, ...]

    def to_wire(self) -> dict[str, Any]:
        return {
            "type": self.action_type,
            "cancels": [{"asset": c.asset, "cloid": c.cloid.to_raw()} for c in self.cancels],
        }


@dataclass(frozen=True, slots=True)
class ModifyAction(L1Action):
    """Replace a single resting order."""

    action_type: ClassVar[str] = "modify"

    #: Exchange order id or client order id of the order to replace
    oid: int | Cloid
    order: OrderWire

    def to_wire(self) -> dict[str, Any]:
        return {
            "type": self.action_type,
            "oid": _oid_to_wire(self.oid),
            "order": self.order.to_wire(),
        }


@dataclass(frozen=True, slots=True)
class ModifyWire:
    oid: int | Cloid
    order: OrderWire


@dataclass(frozen=True, slots=True)
class BatchModifyAction(L1Action):
    """Replace several resting orders in one action."""

    action_type: ClassVar[str] = "batchModify"

    modifies: tuple[ModifyWire, ...]

    def to_wire(self) -> dict[str, Any]:
        return {
            "type": self.action_type,
            "modifies": [{"oid": _oid_to_wire(m.oid), "order": m.order.to_wire()} for m in self.modifies],
        }


@dataclass(frozen=True, slots=True)
class ScheduleCancelAction(L1Action):
    """Dead man's switch: cancel all orders at ``time``.

    Without ``time`` the scheduled cancel is removed.
    """

    action_type: ClassVar[str] = "scheduleCancel"

    #: Millisecond timestamp
    time: int | None = None

    def to_wire(self) -> dict[str, Any]:
        wire = {"type": self.action_type}
        if self.time is not None:
            wire["time"] = self.time
        return wire


@dataclass(frozen=True, slots=True)
class CrossLeverage:
    """Cross margin leverage."""

    value: int


@dataclass(frozen=True, slots=True)
class IsolatedLeverage:
    """Isolated margin leverage."""

    value: int


#: Leverage setting of a position
Leverage = CrossLeverage | IsolatedLeverage


@dataclass(frozen=True, slots=True)
class UpdateLeverageAction(L1Action):
    """Set the leverage of an asset."""

    action_type: ClassVar[str] = "updateLeverage"

    asset: int
    is_cross: bool
    leverage: int

    def __post_init__(self):
        _check_asset(self.asset)
        if self.leverage <= 0:
            raise SchemaError(f"Leverage must be positive: {self.leverage}")

    @classmethod
    def from_leverage(cls, asset: int, leverage: Leverage) -> "UpdateLeverageAction":
        match leverage:
            case CrossLeverage(value=value):
                return cls(asset=asset, is_cross=True, leverage=value)
            case IsolatedLeverage(value=value):
                return cls(asset=asset, is_cross=False, leverage=value)
            case _:
                raise SchemaError(f"Unknown leverage: {leverage!r}")

    def to_wire(self) -> dict[str, Any]:
        return {
            "type": self.action_type,
            "asset": self.asset,
            "isCross": self.is_cross,
            "leverage": self.leverage,
        }


@dataclass(frozen=True, slots=True)
class UpdateIsolatedMarginAction(L1Action):
    """Add or remove margin of an isolated position."""

    action_type: ClassVar[str] = "updateIsolatedMargin"

    asset: int
    is_buy: bool

    #: Margin change in USD fixed-point integer (6 decimals), negative to remove
    ntli: int

    def __post_init__(self):
        _check_asset(self.asset)

    @classmethod
    def from_amount(cls, asset: int, amount: float, is_buy: bool = True) -> "UpdateIsolatedMarginAction":
        return cls(asset=asset, is_buy=is_buy, ntli=float_to_usd_int(amount))

    def to_wire(self) -> dict[str, Any]:
        return {
            "type": self.action_type,
            "asset": self.asset,
            "isBuy": self.is_buy,
            "ntli": self.ntli,
        }


#
# User-signed actions
#


@dataclass(frozen=True, slots=True)
class UsdSendAction(UserSignedAction):
    """Send USDC from perp balance to another address."""

    action_type: ClassVar[str] = "usdSend"

    destination: HexAddress | str
    amount: str
    time: int

    def get_field_values(self) -> dict[str, Any]:
        return {"destination": self.destination, "amount": self.amount, "time": self.time}


@dataclass(frozen=True, slots=True)
class SpotSendAction(UserSignedAction):
    """Send a spot token to another address."""

    action_type: ClassVar[str] = "spotSend"

    destination: HexAddress | str

    #: ``NAME:0x<token id>``
    token: str
    amount: str
    time: int

    def get_field_values(self) -> dict[str, Any]:
        return {"destination": self.destination, "token": self.token, "amount": self.amount, "time": self.time}


@dataclass(frozen=True, slots=True)
class WithdrawAction(UserSignedAction):
    """Withdraw USDC through the bridge."""

    action_type: ClassVar[str] = "withdraw3"

    destination: HexAddress | str
    amount: str
    time: int

    def get_field_values(self) -> dict[str, Any]:
        return {"destination": self.destination, "amount": self.amount, "time": self.time}


@dataclass(frozen=True, slots=True)
class UsdClassTransferAction(UserSignedAction):
    """Move USDC between spot and perp balances."""

    action_type: ClassVar[str] = "usdClassTransfer"

    #: May carry a `` subaccount:<address>`` suffix
    amount: str
    to_perp: bool
    nonce: int

    def get_field_values(self) -> dict[str, Any]:
        return {"amount": self.amount, "toPerp": self.to_perp, "nonce": self.nonce}


@dataclass(frozen=True, slots=True)
class SendAssetAction(UserSignedAction):
    """Move a token between dexes, accounts and sub-accounts."""

    action_type: ClassVar[str] = "sendAsset"

    destination: HexAddress | str
    source_dex: str
    destination_dex: str
    token: str
    amount: str
    nonce: int

    #: Empty string when not sending from a sub-account
    from_sub_account: str = ""

    def get_field_values(self) -> dict[str, Any]:
        return {
            "destination": self.destination,
            "sourceDex": self.source_dex,
            "destinationDex": self.destination_dex,
            "token": self.token,
            "amount": self.amount,
            "fromSubAccount": self.from_sub_account,
            "nonce": self.nonce,
        }


@dataclass(frozen=True, slots=True)
class TokenDelegateAction(UserSignedAction):
    """Stake or unstake HYPE with a validator."""

    action_type: ClassVar[str] = "tokenDelegate"

    validator: HexAddress | str

    #: Amount in wei (8 decimals)
    wei: int
    is_undelegate: bool
    nonce: int

    def get_field_values(self) -> dict[str, Any]:
        return {"validator": self.validator, "wei": self.wei, "isUndelegate": self.is_undelegate, "nonce": self.nonce}


@dataclass(frozen=True, slots=True)
class ApproveAgentAction(UserSignedAction):
    """Authorise an agent (API wallet) to trade for the account."""

    action_type: ClassVar[str] = "approveAgent"

    agent_address: HexAddress | str
    nonce: int

    #: Empty string for an unnamed agent
    agent_name: str = ""

    def get_field_values(self) -> dict[str, Any]:
        return {"agentAddress": self.agent_address, "agentName": self.agent_name, "nonce": self.nonce}


@dataclass(frozen=True, slots=True)
class ApproveBuilderFeeAction(UserSignedAction):
    """Allow a builder to charge up to ``max_fee_rate`` on orders."""

    action_type: ClassVar[str] = "approveBuilderFee"

    #: Percentage string, e.g. ``"0.001%"``
    max_fee_rate: str
    builder: HexAddress | str
    nonce: int

    def get_field_values(self) -> dict[str, Any]:
        return {"maxFeeRate": self.max_fee_rate, "builder": self.builder, "nonce": self.nonce}


@dataclass(frozen=True, slots=True)
class ConvertToMultiSigUserAction(UserSignedAction):
    """Turn the account into a multi-sig account.

    With no authorised users, the account is converted back to a normal user.
    """

    action_type: ClassVar[str] = "convertToMultiSigUser"

    authorized_users: tuple[str, ...]
    threshold: int
    nonce: int

    def __post_init__(self):
        if self.authorized_users and not (1 <= self.threshold <= len(self.authorized_users)):
            raise SchemaError(f"Threshold {self.threshold} does not fit {len(self.authorized_users)} authorised users")

    def get_signers(self) -> str:
        """JSON string the exchange expects in ``signers``."""
        if not self.authorized_users:
            return json.dumps(None)
        signers = {
            "authorizedUsers": sorted(u.lower() for u in self.authorized_users),
            "threshold": self.threshold,
        }
        return json.dumps(signers)

    def get_field_values(self) -> dict[str, Any]:
        return {"signers": self.get_signers(), "nonce": self.nonce}


@dataclass(frozen=True, slots=True)
class MultiSigAction(Action):
    """Action executed for a multi-sig account.

    Carries the inner action and the signatures collected from the authorised users.
    The outer signer then signs the ``SendMultiSig`` envelope,
    see :py:func:`hyperliquid_signing.signing.sign_multi_sig_action`.
    """

    action_type: ClassVar[str] = "multiSig"

    multi_sig_user: HexAddress | str
    outer_signer: HexAddress | str

    #: Inner action wire mapping
    inner_action: dict[str, Any]
    signatures: tuple[Signature, ...]
    signature_chain_id: str = DEFAULT_SIGNATURE_CHAIN_ID

    def to_wire(self) -> dict[str, Any]:
        return {
            "type": self.action_type,
            "signatureChainId": self.signature_chain_id,
            "signatures": [s.to_dict() for s in self.signatures],
            "payload": {
                "multiSigUser": self.multi_sig_user.lower(),
                "outerSigner": self.outer_signer.lower(),
                "action": self.inner_action,
            },
        }
