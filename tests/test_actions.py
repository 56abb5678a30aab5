"""Action dataclasses and their wire mappings."""

import json

import pytest

from hyperliquid_signing.actions import (
    ApproveAgentAction,
    BatchModifyAction,
    CancelAction,
    CancelByCloidAction,
    CancelByCloidWire,
    CancelWire,
    ConvertToMultiSigUserAction,
    CrossLeverage,
    IsolatedLeverage,
    ModifyAction,
    ModifyWire,
    MultiSigAction,
    ScheduleCancelAction,
    SendAssetAction,
    UpdateIsolatedMarginAction,
    UpdateLeverageAction,
    UsdClassTransferAction,
    UsdSendAction,
)
from hyperliquid_signing.eip_712 import Signature
from hyperliquid_signing.exceptions import PrecisionError, SchemaError
from hyperliquid_signing.wire import Cloid, OrderWire


@pytest.fixture()
def order_wire() -> OrderWire:
    return OrderWire(
        asset=1,
        is_buy=True,
        limit_px="100",
        sz="1",
        reduce_only=False,
        order_type={"limit": {"tif": "Gtc"}},
    )


def test_cancel_wire():
    action = CancelAction(cancels=(CancelWire(asset=4, oid=123), CancelWire(asset=5, oid=456)))
    assert action.to_wire() == {"type": "cancel", "cancels": [{"a": 4, "o": 123}, {"a": 5, "o": 456}]}


def test_cancel_by_cloid_wire():
    cloid = Cloid.from_int(7)
    action = CancelByCloidAction(cancels=(CancelByCloidWire(asset=4, cloid=cloid),))
    assert action.to_wire() == {
        "type": "cancelByCloid",
        "cancels": [{"asset": 4, "cloid": "0x00000000000000000000000000000007"}],
    }


def test_modify_wire(order_wire: OrderWire):
    action = ModifyAction(oid=99, order=order_wire)
    wire = action.to_wire()
    assert list(wire.keys()) == ["type", "oid", "order"]
    assert wire["oid"] == 99
    assert wire["order"]["p"] == "100"


def test_batch_modify_by_cloid(order_wire: OrderWire):
    cloid = Cloid.from_int(1)
    action = BatchModifyAction(modifies=(ModifyWire(oid=cloid, order=order_wire),))
    wire = action.to_wire()
    assert wire["type"] == "batchModify"
    assert wire["modifies"][0]["oid"] == cloid.to_raw()


def test_schedule_cancel():
    assert ScheduleCancelAction().to_wire() == {"type": "scheduleCancel"}
    assert ScheduleCancelAction(time=1_700_000_000_000).to_wire() == {"type": "scheduleCancel", "time": 1_700_000_000_000}


def test_update_leverage():
    action = UpdateLeverageAction(asset=0, is_cross=True, leverage=5)
    wire = action.to_wire()
    assert list(wire.keys()) == ["type", "asset", "isCross", "leverage"]
    assert wire == {"type": "updateLeverage", "asset": 0, "isCross": True, "leverage": 5}


def test_update_leverage_from_leverage():
    assert UpdateLeverageAction.from_leverage(3, CrossLeverage(10)).is_cross is True

    isolated = UpdateLeverageAction.from_leverage(3, IsolatedLeverage(4))
    assert isolated.is_cross is False
    assert isolated.leverage == 4
    assert isolated.to_wire() == {"type": "updateLeverage", "asset": 3, "isCross": False, "leverage": 4}


def test_update_leverage_validation():
    with pytest.raises(SchemaError):
        UpdateLeverageAction(asset=0, is_cross=True, leverage=0)

    with pytest.raises(SchemaError):
        UpdateLeverageAction(asset=-1, is_cross=True, leverage=1)


def test_update_isolated_margin():
    action = UpdateIsolatedMarginAction.from_amount(asset=2, amount=-12.5)
    assert action.to_wire() == {"type": "updateIsolatedMargin", "asset": 2, "isBuy": True, "ntli": -12_500_000}

    with pytest.raises(PrecisionError):
        UpdateIsolatedMarginAction.from_amount(asset=2, amount=0.0000001)


def test_usd_send_wire():
    """User-signed wire follows the schema field order, type first."""
    action = UsdSendAction(destination="0x5e9ee1089755c3435139848e47e6635505d5a13a", amount="1.000000", time=1)
    wire = action.to_wire()
    assert list(wire.keys()) == ["type", "destination", "amount", "time"]
    assert wire["type"] == "usdSend"


def test_usd_class_transfer_wire():
    action = UsdClassTransferAction(amount="5.000000", to_perp=True, nonce=2)
    assert action.to_wire() == {"type": "usdClassTransfer", "amount": "5.000000", "toPerp": True, "nonce": 2}


def test_send_asset_wire():
    action = SendAssetAction(
        destination="0x5e9ee1089755c3435139848e47e6635505d5a13a",
        source_dex="",
        destination_dex="spot",
        token="USDC:0xeb62eee3685fc4c43992febcd9e75443",
        amount="1",
        nonce=3,
    )
    wire = action.to_wire()
    assert list(wire.keys()) == ["type", "destination", "sourceDex", "destinationDex", "token", "amount", "fromSubAccount", "nonce"]
    assert wire["fromSubAccount"] == ""


def test_approve_agent_wire():
    action = ApproveAgentAction(agent_address="0x5e9ee1089755c3435139848e47e6635505d5a13a", nonce=4)
    assert action.to_wire() == {
        "type": "approveAgent",
        "agentAddress": "0x5e9ee1089755c3435139848e47e6635505d5a13a",
        "agentName": "",
        "nonce": 4,
    }


def test_convert_to_multi_sig_signers():
    """Signers are sorted lowercase addresses in a JSON string."""
    action = ConvertToMultiSigUserAction(
        authorized_users=(
            "0xF39FD6E51AAD88F6F4CE6AB8827279CFFFB92266",
            "0x70997970c51812dc3a010c7d01b50e0d17dc79c8",
        ),
        threshold=2,
        nonce=5,
    )
    assert json.loads(action.get_signers()) == {
        "authorizedUsers": [
            "0x70997970c51812dc3a010c7d01b50e0d17dc79c8",
            "0xf39fd6e51aad88f6f4ce6ab8827279cfffb92266",
        ],
        "threshold": 2,
    }
    assert action.to_wire()["signers"] == action.get_signers()


def test_convert_back_to_normal_user():
    action = ConvertToMultiSigUserAction(authorized_users=(), threshold=0, nonce=5)
    assert action.get_signers() == "null"


def test_convert_to_multi_sig_bad_threshold():
    with pytest.raises(SchemaError):
        ConvertToMultiSigUserAction(authorized_users=("0x70997970c51812dc3a010c7d01b50e0d17dc79c8",), threshold=2, nonce=5)


def test_multi_sig_wire():
    signature = Signature(r="0x" + "11" * 32, s="0x" + "22" * 32, v=27)
    action = MultiSigAction(
        multi_sig_user="0xF39FD6E51AAD88F6F4CE6AB8827279CFFFB92266",
        outer_signer="0x70997970C51812dc3A010C7d01b50e0d17dc79C8",
        inner_action={"type": "scheduleCancel"},
        signatures=(signature,),
    )
    wire = action.to_wire()
    assert list(wire.keys()) == ["type", "signatureChainId", "signatures", "payload"]
    assert wire["signatures"] == [{"r": "0x" + "11" * 32, "s": "0x" + "22" * 32, "v": 27}]
    assert wire["payload"] == {
        "multiSigUser": "0xf39fd6e51aad88f6f4ce6ab8827279cfffb92266",
        "outerSigner": "0x70997970c51812dc3a010c7d01b50e0d17dc79c8",
        "action": {"type": "scheduleCancel"},
    }
