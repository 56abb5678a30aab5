"""Signed exchange payloads."""

import pytest
from eth_account.signers.local import LocalAccount

from hyperliquid_signing.actions import IsolatedLeverage, UsdSendAction
from hyperliquid_signing.constants import MAINNET_API_URL, TESTNET_API_URL
from hyperliquid_signing.eip_712 import Signature
from hyperliquid_signing.exceptions import SchemaError
from hyperliquid_signing.exchange import ExchangeActionSigner
from hyperliquid_signing.signing import recover_signer, sign_l1_action, sign_multi_sig_action, sign_usd_transfer_action
from hyperliquid_signing.user_signed import APPROVE_AGENT_SIGN_TYPES, user_signed_payload
from hyperliquid_signing.wire import (
    BuilderInfo,
    CancelRequest,
    Cloid,
    Grouping,
    LimitOrderType,
    OrderRequest,
    OrderType,
    TimeInForce,
    TpSl,
    TriggerOrderType,
)

COINS = {"BTC": 0, "ETH": 1}


@pytest.fixture()
def signer(wallet: LocalAccount) -> ExchangeActionSigner:
    return ExchangeActionSigner(wallet, is_mainnet=False, coin_to_asset=COINS)


@pytest.fixture()
def vault_signer(wallet: LocalAccount, vault_address) -> ExchangeActionSigner:
    return ExchangeActionSigner(wallet, is_mainnet=False, vault_address=vault_address, coin_to_asset=COINS)


def test_order(signer: ExchangeActionSigner, wallet: LocalAccount, nonce):
    payload = signer.order(
        "ETH",
        is_buy=True,
        sz=0.2,
        limit_px=1100.0,
        order_type=OrderType(limit=LimitOrderType(TimeInForce.gtc)),
        nonce=nonce,
    )

    assert payload["action"] == {
        "type": "order",
        "orders": [
            {
                "a": 1,
                "b": True,
                "p": "1100",
                "s": "0.2",
                "r": False,
                "t": {"limit": {"tif": "Gtc"}},
            }
        ],
        "grouping": "na",
    }
    assert payload["nonce"] == nonce
    assert "vaultAddress" not in payload
    assert "expiresAfter" not in payload

    expected = sign_l1_action(wallet, payload["action"], None, nonce, None, is_mainnet=False)
    assert payload["signature"] == expected.to_dict()


def test_bulk_orders_with_tpsl(signer: ExchangeActionSigner, nonce):
    builder = BuilderInfo(address="0x8c967E73E7B15087c42A10D344cFf4c96D877f1D", fee=10)
    orders = [
        OrderRequest("BTC", True, 0.001, 60000.0, OrderType(limit=LimitOrderType(TimeInForce.gtc)), cloid=Cloid.from_int(1)),
        OrderRequest("BTC", False, 0.001, 55000.0, OrderType(trigger=TriggerOrderType(55000.0, True, TpSl.sl)), reduce_only=True),
    ]
    payload = signer.bulk_orders(orders, builder=builder, grouping=Grouping.normal_tpsl, nonce=nonce)

    action = payload["action"]
    assert action["grouping"] == "normalTpsl"
    assert action["builder"] == {"b": "0x8c967e73e7b15087c42a10d344cff4c96d877f1d", "f": 10}
    assert action["orders"][0]["c"] == "0x00000000000000000000000000000001"
    assert action["orders"][1]["t"] == {"trigger": {"isMarket": True, "triggerPx": "55000", "tpsl": "sl"}}


def test_unknown_coin(signer: ExchangeActionSigner):
    with pytest.raises(SchemaError):
        signer.cancel("DOGE", 1, nonce=1)


def test_vault_and_expiry(vault_signer: ExchangeActionSigner, wallet: LocalAccount, vault_address, nonce):
    """Vault and expiry are both hashed and sent."""
    vault_signer.set_expires_after(nonce + 10_000)
    payload = vault_signer.bulk_cancel([CancelRequest("BTC", 11), CancelRequest("ETH", 12)], nonce=nonce)

    assert payload["action"] == {"type": "cancel", "cancels": [{"a": 0, "o": 11}, {"a": 1, "o": 12}]}
    assert payload["vaultAddress"] == vault_address
    assert payload["expiresAfter"] == nonce + 10_000

    expected = sign_l1_action(wallet, payload["action"], vault_address, nonce, nonce + 10_000, is_mainnet=False)
    assert payload["signature"] == expected.to_dict()

    vault_signer.set_expires_after(None)
    assert "expiresAfter" not in vault_signer.schedule_cancel(nonce=nonce)


def test_modify_order(signer: ExchangeActionSigner, nonce):
    cloid = Cloid.from_int(5)
    payload = signer.modify_order(cloid, "ETH", False, 1.0, 2000.0, OrderType(limit=LimitOrderType(TimeInForce.alo)), nonce=nonce)
    assert payload["action"]["type"] == "modify"
    assert payload["action"]["oid"] == cloid.to_raw()
    assert payload["action"]["order"]["t"] == {"limit": {"tif": "Alo"}}


def test_cancel_by_cloid(signer: ExchangeActionSigner, nonce):
    payload = signer.cancel_by_cloid("BTC", Cloid.from_int(9), nonce=nonce)
    assert payload["action"] == {"type": "cancelByCloid", "cancels": [{"asset": 0, "cloid": "0x00000000000000000000000000000009"}]}


def test_update_leverage(signer: ExchangeActionSigner, nonce):
    cross = signer.update_leverage(10, "ETH", nonce=nonce)
    assert cross["action"] == {"type": "updateLeverage", "asset": 1, "isCross": True, "leverage": 10}

    isolated = signer.update_leverage(IsolatedLeverage(3), "BTC", nonce=nonce)
    assert isolated["action"] == {"type": "updateLeverage", "asset": 0, "isCross": False, "leverage": 3}


def test_update_isolated_margin(signer: ExchangeActionSigner, nonce):
    payload = signer.update_isolated_margin(25.5, "ETH", nonce=nonce)
    assert payload["action"] == {"type": "updateIsolatedMargin", "asset": 1, "isBuy": True, "ntli": 25_500_000}


def test_usd_transfer(signer: ExchangeActionSigner, wallet: LocalAccount, nonce):
    """The sent action is the signed action with the injected fields."""
    destination = "0x5e9ee1089755c3435139848e47e6635505d5a13a"
    payload = signer.usd_transfer(1.0, destination, nonce=nonce)

    assert payload["action"] == {
        "type": "usdSend",
        "signatureChainId": "0x66eee",
        "hyperliquidChain": "Testnet",
        "destination": destination,
        "amount": "1.000000",
        "time": nonce,
    }
    expected = sign_usd_transfer_action(wallet, UsdSendAction(destination=destination, amount="1.000000", time=nonce), is_mainnet=False)
    assert payload["signature"] == expected.to_dict()


def test_usd_class_transfer_for_sub_account(vault_signer: ExchangeActionSigner, vault_address, nonce):
    payload = vault_signer.usd_class_transfer(5.0, to_perp=True, nonce=nonce)
    assert payload["action"]["amount"] == f"5.000000 subaccount:{vault_address}"
    assert "vaultAddress" not in payload


def test_send_asset_from_sub_account(vault_signer: ExchangeActionSigner, vault_address, nonce):
    payload = vault_signer.send_asset("0x5e9ee1089755c3435139848e47e6635505d5a13a", "", "spot", "USDC:0xeb62eee3685fc4c43992febcd9e75443", 2.5, nonce=nonce)
    assert payload["action"]["fromSubAccount"] == vault_address
    assert payload["action"]["amount"] == "2.5"
    assert "vaultAddress" not in payload


def test_spot_transfer_and_withdraw(signer: ExchangeActionSigner, nonce):
    destination = "0x5e9ee1089755c3435139848e47e6635505d5a13a"
    spot = signer.spot_transfer(12.5, destination, "PURR:0xc4bf3f870c0e9465323c0b6ed28096c2", nonce=nonce)
    assert spot["action"]["type"] == "spotSend"
    assert spot["action"]["amount"] == "12.5"

    withdraw = signer.withdraw_from_bridge(10.0, destination, nonce=nonce)
    assert withdraw["action"]["type"] == "withdraw3"
    assert withdraw["action"]["amount"] == "10"


def test_approve_unnamed_agent(signer: ExchangeActionSigner, wallet: LocalAccount, co_signer: LocalAccount, nonce):
    """Unnamed agent is signed with an empty name and sent without one."""
    payload = signer.approve_agent(co_signer.address, nonce=nonce)
    assert "agentName" not in payload["action"]

    signed_action = dict(payload["action"], agentName="")
    typed_data = user_signed_payload(APPROVE_AGENT_SIGN_TYPES.primary_type, APPROVE_AGENT_SIGN_TYPES.to_eip712_fields(), signed_action)
    signature = Signature(**payload["signature"])
    assert recover_signer(typed_data, signature) == wallet.address


def test_approve_named_agent(signer: ExchangeActionSigner, co_signer: LocalAccount, nonce):
    payload = signer.approve_agent(co_signer.address, name="market maker", nonce=nonce)
    assert payload["action"]["agentName"] == "market maker"


def test_account_management(signer: ExchangeActionSigner, co_signer: LocalAccount, nonce):
    delegate = signer.token_delegate(co_signer.address, 100_000_000, is_undelegate=False, nonce=nonce)
    assert delegate["action"]["isUndelegate"] is False

    builder_fee = signer.approve_builder_fee(co_signer.address, "0.001%", nonce=nonce)
    assert builder_fee["action"]["maxFeeRate"] == "0.001%"

    convert = signer.convert_to_multi_sig_user([co_signer.address], 1, nonce=nonce)
    assert convert["action"]["type"] == "convertToMultiSigUser"
    assert co_signer.address.lower() in convert["action"]["signers"]


def test_multi_sig(signer: ExchangeActionSigner, wallet: LocalAccount, nonce):
    co_signature = Signature(r="0x" + "11" * 32, s="0x" + "22" * 32, v=27)
    payload = signer.multi_sig(
        "0xF39FD6E51AAD88F6F4CE6AB8827279CFFFB92266",
        {"type": "scheduleCancel"},
        [co_signature],
        nonce=nonce,
    )
    action = payload["action"]
    assert action["type"] == "multiSig"
    assert action["payload"]["outerSigner"] == wallet.address.lower()

    expected = sign_multi_sig_action(wallet, action, is_mainnet=False, vault_address=None, nonce=nonce, expires_after=None)
    assert payload["signature"] == expected.to_dict()


def test_default_nonce(signer: ExchangeActionSigner, monkeypatch):
    monkeypatch.setattr("hyperliquid_signing.exchange.get_timestamp_ms", lambda: 1_700_000_000_123)
    payload = signer.schedule_cancel(time=1_700_000_060_000)
    assert payload["nonce"] == 1_700_000_000_123


def test_for_base_url(wallet: LocalAccount):
    assert ExchangeActionSigner.for_base_url(wallet, MAINNET_API_URL).is_mainnet is True
    assert ExchangeActionSigner.for_base_url(wallet, TESTNET_API_URL).is_mainnet is False


def test_repr_does_not_leak_key(signer: ExchangeActionSigner, private_key: str):
    assert private_key[2:] not in repr(signer)
