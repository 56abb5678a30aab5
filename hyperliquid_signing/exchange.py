"""Build signed exchange requests.

:py:class:`ExchangeActionSigner` turns trading intents into signed
``/exchange`` request bodies. It does not talk to the network:
posting the payload, retries and rate limits are the transport's job.

Example::

    from eth_account import Account
    from hyperliquid_signing.exchange import ExchangeActionSigner
    from hyperliquid_signing.wire import LimitOrderType, OrderType, TimeInForce

    signer = ExchangeActionSigner(
        wallet=Account.from_key(private_key),
        is_mainnet=False,
        coin_to_asset={"BTC": 0, "ETH": 1},
    )

    payload = signer.order(
        "ETH",
        is_buy=True,
        sz=0.2,
        limit_px=1100.0,
        order_type=OrderType(limit=LimitOrderType(TimeInForce.gtc)),
    )
    # POST payload as JSON to https://api.hyperliquid-testnet.xyz/exchange

The signer is immutable apart from :py:meth:`ExchangeActionSigner.set_expires_after`
and holds no per-call state, so it can be shared between threads as long as
every call gets its own nonce.
"""

import logging
from typing import Any, Mapping

from eth_typing import HexAddress

from hyperliquid_signing.actions import (
    ApproveAgentAction,
    ApproveBuilderFeeAction,
    BatchModifyAction,
    CancelAction,
    CancelByCloidAction,
    CancelByCloidWire,
    CancelWire,
    ConvertToMultiSigUserAction,
    CrossLeverage,
    IsolatedLeverage,
    L1Action,
    Leverage,
    ModifyAction,
    ModifyWire,
    MultiSigAction,
    OrderAction,
    ScheduleCancelAction,
    SendAssetAction,
    SpotSendAction,
    TokenDelegateAction,
    UpdateIsolatedMarginAction,
    UpdateLeverageAction,
    UsdClassTransferAction,
    UsdSendAction,
    UserSignedAction,
    WithdrawAction,
)
from hyperliquid_signing.constants import DEFAULT_SIGNATURE_CHAIN_ID, MAINNET_API_URL
from hyperliquid_signing.eip_712 import Signature
from hyperliquid_signing.exceptions import SchemaError
from hyperliquid_signing.numeric import float_to_wire, format_usd_amount, get_timestamp_ms
from hyperliquid_signing.payload import build_exchange_payload
from hyperliquid_signing.signing import Wallet, get_local_account, sign_l1_action, sign_multi_sig_action, sign_user_signed_action
from hyperliquid_signing.user_signed import prepare_user_signed_action
from hyperliquid_signing.wire import (
    BuilderInfo,
    CancelByCloidRequest,
    CancelRequest,
    Cloid,
    Grouping,
    ModifyRequest,
    OrderRequest,
    OrderType,
    order_request_to_order_wire,
)

logger = logging.getLogger(__name__)


class ExchangeActionSigner:
    """Sign exchange actions for one account.

    Every public method returns the request body for the ``/exchange`` endpoint,
    see :py:func:`~hyperliquid_signing.payload.build_exchange_payload`.
    """

    def __init__(
        self,
        wallet: Wallet,
        is_mainnet: bool = True,
        vault_address: HexAddress | str | None = None,
        expires_after: int | None = None,
        coin_to_asset: Mapping[str, int] | None = None,
        signature_chain_id: str = DEFAULT_SIGNATURE_CHAIN_ID,
    ):
        """Create a signer.

        :param wallet:
            Account signing the actions. Either the account itself or an approved agent.

        :param is_mainnet:
            Target network

        :param vault_address:
            Vault or sub-account to trade for

        :param expires_after:
            Millisecond timestamp after which the exchange rejects the actions

        :param coin_to_asset:
            Coin name -> asset index, from the exchange ``meta`` and ``spotMeta`` endpoints.
            Needed for order, cancel, leverage and margin actions.

        :param signature_chain_id:
            Chain id written into user-signed actions

        :raise SigningError:
            Invalid key material
        """
        self.wallet = get_local_account(wallet)
        self.is_mainnet = is_mainnet
        self.vault_address = vault_address
        self.expires_after = expires_after
        self.coin_to_asset = dict(coin_to_asset or {})
        self.signature_chain_id = signature_chain_id

    @classmethod
    def for_base_url(cls, wallet: Wallet, base_url: str = MAINNET_API_URL, **kwargs) -> "ExchangeActionSigner":
        """Create a signer for an API endpoint.

        Mainnet is used only for :py:data:`~hyperliquid_signing.constants.MAINNET_API_URL`.
        """
        return cls(wallet, is_mainnet=base_url == MAINNET_API_URL, **kwargs)

    def __repr__(self):
        return f"<ExchangeActionSigner {self.wallet.address} mainnet:{self.is_mainnet} vault:{self.vault_address}>"

    def set_expires_after(self, expires_after: int | None):
        """Set or clear the expiry used for subsequent actions."""
        self.expires_after = expires_after

    def name_to_asset(self, name: str) -> int:
        """Resolve a coin name to its asset index.

        :raise SchemaError:
            Unknown coin
        """
        try:
            return self.coin_to_asset[name]
        except KeyError as e:
            raise SchemaError(f"Unknown coin {name}, known coins: {sorted(self.coin_to_asset.keys())}") from e

    def _resolve_nonce(self, nonce: int | None) -> int:
        return get_timestamp_ms() if nonce is None else nonce

    def _sign_l1(self, action: L1Action, nonce: int | None) -> dict[str, Any]:
        nonce = self._resolve_nonce(nonce)
        wire = action.to_wire()
        signature = sign_l1_action(
            self.wallet,
            wire,
            self.vault_address,
            nonce,
            self.expires_after,
            self.is_mainnet,
        )
        logger.debug("Signed L1 action %s, nonce %d", action.action_type, nonce)
        return build_exchange_payload(wire, nonce, signature, self.vault_address, self.expires_after)

    def _sign_user(self, action: UserSignedAction, nonce: int) -> tuple[dict[str, Any], Signature]:
        schema = action.get_schema()
        wire = prepare_user_signed_action(action.to_wire(), self.is_mainnet, self.signature_chain_id)
        signature = sign_user_signed_action(
            self.wallet,
            wire,
            schema.to_eip712_fields(),
            schema.primary_type,
            self.is_mainnet,
            self.signature_chain_id,
        )
        logger.debug("Signed user action %s, nonce %d", action.action_type, nonce)
        return wire, signature

    def _sign_user_payload(self, action: UserSignedAction, nonce: int) -> dict[str, Any]:
        wire, signature = self._sign_user(action, nonce)
        return build_exchange_payload(wire, nonce, signature, self.vault_address, self.expires_after)

    #
    # Orders
    #

    def order(
        self,
        name: str,
        is_buy: bool,
        sz: float,
        limit_px: float,
        order_type: OrderType,
        reduce_only: bool = False,
        cloid: Cloid | None = None,
        builder: BuilderInfo | None = None,
        nonce: int | None = None,
    ) -> dict[str, Any]:
        """Place a single order."""
        request = OrderRequest(
            coin=name,
            is_buy=is_buy,
            sz=sz,
            limit_px=limit_px,
            order_type=order_type,
            reduce_only=reduce_only,
            cloid=cloid,
        )
        return self.bulk_orders([request], builder=builder, nonce=nonce)

    def bulk_orders(
        self,
        order_requests: list[OrderRequest],
        builder: BuilderInfo | None = None,
        grouping: Grouping = Grouping.na,
        nonce: int | None = None,
    ) -> dict[str, Any]:
        """Place several orders in one action.

        :param grouping:
            Use :py:attr:`Grouping.normal_tpsl` to attach TP/SL trigger orders to the first order
        """
        order_wires = tuple(order_request_to_order_wire(o, self.name_to_asset(o.coin)) for o in order_requests)
        action = OrderAction(orders=order_wires, grouping=grouping, builder=builder)
        return self._sign_l1(action, nonce)

    def modify_order(
        self,
        oid: int | Cloid,
        name: str,
        is_buy: bool,
        sz: float,
        limit_px: float,
        order_type: OrderType,
        reduce_only: bool = False,
        cloid: Cloid | None = None,
        nonce: int | None = None,
    ) -> dict[str, Any]:
        """Replace a resting order."""
        request = OrderRequest(
            coin=name,
            is_buy=is_buy,
            sz=sz,
            limit_px=limit_px,
            order_type=order_type,
            reduce_only=reduce_only,
            cloid=cloid,
        )
        action = ModifyAction(oid=oid, order=order_request_to_order_wire(request, self.name_to_asset(name)))
        return self._sign_l1(action, nonce)

    def bulk_modify_orders(self, modify_requests: list[ModifyRequest], nonce: int | None = None) -> dict[str, Any]:
        """Replace several resting orders."""
        modifies = tuple(
            ModifyWire(
                oid=m.oid,
                order=order_request_to_order_wire(m.order, self.name_to_asset(m.order.coin)),
            )
            for m in modify_requests
        )
        return self._sign_l1(BatchModifyAction(modifies=modifies), nonce)

    def cancel(self, name: str, oid: int, nonce: int | None = None) -> dict[str, Any]:
        return self.bulk_cancel([CancelRequest(coin=name, oid=oid)], nonce=nonce)

    def bulk_cancel(self, cancel_requests: list[CancelRequest], nonce: int | None = None) -> dict[str, Any]:
        cancels = tuple(CancelWire(asset=self.name_to_asset(c.coin), oid=c.oid) for c in cancel_requests)
        return self._sign_l1(CancelAction(cancels=cancels), nonce)

    def cancel_by_cloid(self, name: str, cloid: Cloid, nonce: int | None = None) -> dict[str, Any]:
        return self.bulk_cancel_by_cloid([CancelByCloidRequest(coin=name, cloid=cloid)], nonce=nonce)

    def bulk_cancel_by_cloid(self, cancel_requests: list[CancelByCloidRequest], nonce: int | None = None) -> dict[str, Any]:
        cancels = tuple(CancelByCloidWire(asset=self.name_to_asset(c.coin), cloid=c.cloid) for c in cancel_requests)
        return self._sign_l1(CancelByCloidAction(cancels=cancels), nonce)

    def schedule_cancel(self, time: int | None = None, nonce: int | None = None) -> dict[str, Any]:
        """Cancel all open orders at ``time``, or unset the schedule."""
        return self._sign_l1(ScheduleCancelAction(time=time), nonce)

    #
    # Positions
    #

    def update_leverage(
        self,
        leverage: int | Leverage,
        name: str,
        is_cross: bool = True,
        nonce: int | None = None,
    ) -> dict[str, Any]:
        """Set leverage of an asset.

        :param leverage:
            Plain integer leverage combined with ``is_cross``,
            or a :py:data:`~hyperliquid_signing.actions.Leverage` that carries the margin mode itself
        """
        asset = self.name_to_asset(name)
        if isinstance(leverage, (CrossLeverage, IsolatedLeverage)):
            action = UpdateLeverageAction.from_leverage(asset, leverage)
        else:
            action = UpdateLeverageAction(asset=asset, is_cross=is_cross, leverage=leverage)
        return self._sign_l1(action, nonce)

    def update_isolated_margin(self, amount: float, name: str, nonce: int | None = None) -> dict[str, Any]:
        """Add (positive) or remove (negative) USD margin of an isolated position."""
        action = UpdateIsolatedMarginAction.from_amount(self.name_to_asset(name), amount)
        return self._sign_l1(action, nonce)

    #
    # Transfers
    #

    def usd_transfer(self, amount: float, destination: HexAddress | str, nonce: int | None = None) -> dict[str, Any]:
        nonce = self._resolve_nonce(nonce)
        action = UsdSendAction(destination=destination, amount=format_usd_amount(amount), time=nonce)
        return self._sign_user_payload(action, nonce)

    def usd_class_transfer(self, amount: float, to_perp: bool, nonce: int | None = None) -> dict[str, Any]:
        """Move USDC between spot and perp.

        With a vault configured, the transfer is made for that sub-account.
        """
        nonce = self._resolve_nonce(nonce)
        str_amount = format_usd_amount(amount)
        if self.vault_address:
            str_amount += f" subaccount:{self.vault_address}"
        action = UsdClassTransferAction(amount=str_amount, to_perp=to_perp, nonce=nonce)
        return self._sign_user_payload(action, nonce)

    def spot_transfer(self, amount: float, destination: HexAddress | str, token: str, nonce: int | None = None) -> dict[str, Any]:
        nonce = self._resolve_nonce(nonce)
        action = SpotSendAction(destination=destination, token=token, amount=float_to_wire(amount), time=nonce)
        return self._sign_user_payload(action, nonce)

    def withdraw_from_bridge(self, amount: float, destination: HexAddress | str, nonce: int | None = None) -> dict[str, Any]:
        nonce = self._resolve_nonce(nonce)
        action = WithdrawAction(destination=destination, amount=float_to_wire(amount), time=nonce)
        return self._sign_user_payload(action, nonce)

    def send_asset(
        self,
        destination: HexAddress | str,
        source_dex: str,
        destination_dex: str,
        token: str,
        amount: float,
        nonce: int | None = None,
    ) -> dict[str, Any]:
        """Move a token between dexes, or to another account.

        With a vault configured, the asset is sent from that sub-account.
        """
        nonce = self._resolve_nonce(nonce)
        action = SendAssetAction(
            destination=destination,
            source_dex=source_dex,
            destination_dex=destination_dex,
            token=token,
            amount=float_to_wire(amount),
            from_sub_account=self.vault_address or "",
            nonce=nonce,
        )
        return self._sign_user_payload(action, nonce)

    #
    # Account management
    #

    def token_delegate(self, validator: HexAddress | str, wei: int, is_undelegate: bool, nonce: int | None = None) -> dict[str, Any]:
        nonce = self._resolve_nonce(nonce)
        action = TokenDelegateAction(validator=validator, wei=wei, is_undelegate=is_undelegate, nonce=nonce)
        return self._sign_user_payload(action, nonce)

    def approve_agent(self, agent_address: HexAddress | str, name: str | None = None, nonce: int | None = None) -> dict[str, Any]:
        """Authorise an API wallet.

        Generating and storing the agent key is up to the caller.
        An unnamed agent is signed with an empty name and sent without ``agentName``.
        """
        nonce = self._resolve_nonce(nonce)
        action = ApproveAgentAction(agent_address=agent_address, agent_name=name or "", nonce=nonce)
        wire, signature = self._sign_user(action, nonce)
        if name is None:
            del wire["agentName"]
        return build_exchange_payload(wire, nonce, signature, self.vault_address, self.expires_after)

    def approve_builder_fee(self, builder: HexAddress | str, max_fee_rate: str, nonce: int | None = None) -> dict[str, Any]:
        nonce = self._resolve_nonce(nonce)
        action = ApproveBuilderFeeAction(max_fee_rate=max_fee_rate, builder=builder, nonce=nonce)
        return self._sign_user_payload(action, nonce)

    def convert_to_multi_sig_user(self, authorized_users: list[str], threshold: int, nonce: int | None = None) -> dict[str, Any]:
        """Turn this account into a multi-sig account.

        Pass an empty ``authorized_users`` to convert back to a normal user.
        """
        nonce = self._resolve_nonce(nonce)
        action = ConvertToMultiSigUserAction(authorized_users=tuple(authorized_users), threshold=threshold, nonce=nonce)
        return self._sign_user_payload(action, nonce)

    def multi_sig(
        self,
        multi_sig_user: HexAddress | str,
        inner_action: Mapping[str, Any],
        signatures: list[Signature],
        nonce: int,
        vault_address: HexAddress | str | None = None,
    ) -> dict[str, Any]:
        """Submit an action for a multi-sig account as its outer signer.

        :param inner_action:
            Wire action the authorised users signed

        :param signatures:
            Co-signer signatures, see :py:func:`~hyperliquid_signing.signing.sign_multi_sig_l1_action_payload`
            and :py:func:`~hyperliquid_signing.signing.sign_multi_sig_user_signed_action_payload`

        :param nonce:
            The nonce the co-signers used
        """
        action = MultiSigAction(
            multi_sig_user=multi_sig_user,
            outer_signer=self.wallet.address,
            inner_action=dict(inner_action),
            signatures=tuple(signatures),
            signature_chain_id=self.signature_chain_id,
        )
        wire = action.to_wire()
        signature = sign_multi_sig_action(self.wallet, wire, self.is_mainnet, vault_address, nonce, self.expires_after)
        logger.debug("Signed multi-sig action for %s, nonce %d", multi_sig_user, nonce)
        return build_exchange_payload(wire, nonce, signature, vault_address, self.expires_after)
