"""Order wire format.

Converts caller-side order requests into the compact wire shape
that is msgpack-serialised and hashed for L1 signing.

The wire keys are single letters and their order matters:
the exchange recomputes the hash from its own canonical field order,
so a different insertion order is a different action.

.. code-block:: text

    a  asset index
    b  is buy
    p  limit price, canonical decimal string
    s  size, canonical decimal string
    r  reduce only
    t  order type
    c  client order id (optional)

Example::

    from hyperliquid_signing.wire import OrderRequest, OrderType, LimitOrderType, TimeInForce, order_request_to_order_wire

    request = OrderRequest(
        coin="ETH",
        is_buy=True,
        sz=0.0147,
        limit_px=1670.1,
        order_type=OrderType(limit=LimitOrderType(TimeInForce.ioc)),
    )
    wire = order_request_to_order_wire(request, asset=4)
    assert wire.to_wire()["p"] == "1670.1"
"""

import enum
from dataclasses import dataclass
from typing import Any

from eth_typing import HexAddress

from hyperliquid_signing.exceptions import SchemaError
from hyperliquid_signing.numeric import float_to_wire, is_canonical_wire_decimal

#: Client order ids are 16 bytes
CLOID_BYTES = 16


class TimeInForce(enum.Enum):
    """Limit order time in force."""

    #: Add liquidity only, i.e. post only
    alo = "Alo"
    #: Immediate or cancel
    ioc = "Ioc"
    #: Good till cancel
    gtc = "Gtc"


class TpSl(enum.Enum):
    """Trigger order kind."""

    #: Take profit
    tp = "tp"
    #: Stop loss
    sl = "sl"


class Grouping(enum.Enum):
    """How the orders of a bulk order relate to each other."""

    #: Independent orders
    na = "na"
    #: TP/SL orders tied to the parent order
    normal_tpsl = "normalTpsl"
    #: TP/SL orders tied to the position
    position_tpsl = "positionTpsl"


@dataclass(frozen=True, slots=True)
class LimitOrderType:
    tif: TimeInForce

    def to_wire(self) -> dict[str, Any]:
        return {"tif": self.tif.value}


@dataclass(frozen=True, slots=True)
class TriggerOrderType:
    #: Trigger price as a float, converted with :py:func:`~hyperliquid_signing.numeric.float_to_wire`
    trigger_px: float
    #: Execute as market order when triggered
    is_market: bool
    tpsl: TpSl

    def to_wire(self) -> dict[str, Any]:
        return {
            "isMarket": self.is_market,
            "triggerPx": float_to_wire(self.trigger_px),
            "tpsl": self.tpsl.value,
        }


@dataclass(frozen=True, slots=True)
class OrderType:
    """Order type variant.

    Exactly one of ``limit`` and ``trigger`` must be set
    by the time the order is converted to the wire format.
    """

    limit: LimitOrderType | None = None
    trigger: TriggerOrderType | None = None


def order_type_to_wire(order_type: OrderType) -> dict[str, Any]:
    """Encode the order type variant.

    :return:
        ``{"limit": {"tif": ...}}`` or ``{"trigger": {"isMarket": ..., "triggerPx": ..., "tpsl": ...}}``

    :raise SchemaError:
        If neither or both variants are set
    """
    if order_type.limit is not None and order_type.trigger is not None:
        raise SchemaError(f"Order type cannot be both limit and trigger: {order_type}")

    if order_type.limit is not None:
        return {"limit": order_type.limit.to_wire()}
    elif order_type.trigger is not None:
        return {"trigger": order_type.trigger.to_wire()}

    raise SchemaError(f"Order type must be limit or trigger: {order_type}")


@dataclass(frozen=True, slots=True)
class Cloid:
    """Client order id.

    A 16-byte id chosen by the client, written as ``0x`` followed by 32 hex digits.
    """

    raw: str

    def __post_init__(self):
        if not isinstance(self.raw, str) or not self.raw.startswith("0x"):
            raise SchemaError(f"Client order id is not a 0x hex string: {self.raw!r}")
        digits = self.raw[2:]
        if len(digits) != CLOID_BYTES * 2:
            raise SchemaError(f"Client order id is not {CLOID_BYTES} bytes: {self.raw!r}")
        try:
            bytes.fromhex(digits)
        except ValueError as e:
            raise SchemaError(f"Client order id is not hex: {self.raw!r}") from e

    @classmethod
    def from_int(cls, cloid: int) -> "Cloid":
        if not 0 <= cloid < 2 ** (CLOID_BYTES * 8):
            raise SchemaError(f"Client order id out of range: {cloid}")
        return cls(f"{cloid:#034x}")

    @classmethod
    def from_str(cls, cloid: str) -> "Cloid":
        return cls(cloid)

    def to_raw(self) -> str:
        return self.raw

    def to_int(self) -> int:
        return int(self.raw, 16)

    def __str__(self) -> str:
        return self.raw


@dataclass(frozen=True, slots=True)
class BuilderInfo:
    """Builder fee descriptor attached to an order action."""

    #: Builder address, sent lowercased
    address: HexAddress | str

    #: Fee in tenths of a basis point, e.g. ``10`` is 1 bps
    fee: int

    def __post_init__(self):
        if self.fee < 0:
            raise SchemaError(f"Builder fee cannot be negative: {self.fee}")

    def to_wire(self) -> dict[str, Any]:
        return {"b": self.address.lower(), "f": self.fee}


@dataclass(frozen=True, slots=True)
class OrderRequest:
    """An order as the caller describes it.

    ``coin`` is resolved to an asset index before conversion,
    see :py:func:`order_request_to_order_wire`.
    """

    coin: str
    is_buy: bool
    sz: float
    limit_px: float
    order_type: OrderType
    reduce_only: bool = False
    cloid: Cloid | None = None


@dataclass(frozen=True, slots=True)
class OrderWire:
    """Order in the wire format.

    Price and size are already canonical decimal strings.
    """

    asset: int
    is_buy: bool
    limit_px: str
    sz: str
    reduce_only: bool
    order_type: dict[str, Any]
    cloid: Cloid | None = None

    def __post_init__(self):
        if not isinstance(self.asset, int) or isinstance(self.asset, bool) or self.asset < 0:
            raise SchemaError(f"Asset index must be a non-negative integer: {self.asset!r}")
        for name, value in (("limit_px", self.limit_px), ("sz", self.sz)):
            if not is_canonical_wire_decimal(value):
                raise SchemaError(f"{name} is not a canonical wire decimal: {value!r}")

    def to_wire(self) -> dict[str, Any]:
        wire = {
            "a": self.asset,
            "b": self.is_buy,
            "p": self.limit_px,
            "s": self.sz,
            "r": self.reduce_only,
            "t": self.order_type,
        }
        if self.cloid is not None:
            wire["c"] = self.cloid.to_raw()
        return wire


def order_request_to_order_wire(order: OrderRequest, asset: int) -> OrderWire:
    """Convert an order request to the wire format.

    :param order:
        Caller order

    :param asset:
        Resolved asset index of ``order.coin``

    :raise PrecisionError:
        Price, size or trigger price has too many decimals

    :raise SchemaError:
        Bad order type or asset index
    """
    return OrderWire(
        asset=asset,
        is_buy=order.is_buy,
        limit_px=float_to_wire(order.limit_px),
        sz=float_to_wire(order.sz),
        reduce_only=order.reduce_only,
        order_type=order_type_to_wire(order.order_type),
        cloid=order.cloid,
    )


def order_wires_to_order_action(
    order_wires: list[OrderWire],
    builder: BuilderInfo | None = None,
    grouping: Grouping = Grouping.na,
) -> dict[str, Any]:
    """Wrap order wires into an order action wire mapping.

    Key order is ``type``, ``orders``, ``grouping`` and optional ``builder``.
    """
    action = {
        "type": "order",
        "orders": [o.to_wire() for o in order_wires],
        "grouping": grouping.value,
    }
    if builder is not None:
        action["builder"] = builder.to_wire()
    return action


@dataclass(frozen=True, slots=True)
class CancelRequest:
    coin: str
    oid: int


@dataclass(frozen=True, slots=True)
class CancelByCloidRequest:
    coin: str
    cloid: Cloid


@dataclass(frozen=True, slots=True)
class ModifyRequest:
    """Replace a resting order.

    The order is identified either by exchange order id or by client order id.
    """

    oid: int | Cloid
    order: OrderRequest
