"""EIP-712 structured data hashing.

- Routines for EIP712 encoding used by both L1 (phantom agent) and user-signed actions.

- `Based on Gnosis utilities <https://raw.githubusercontent.com/safe-global/safe-eth-py/master/gnosis/eth/eip712/__init__.py>`__.

Example:

.. code-block:: python

    typed_data = TypedData(
        domain={
            "name": "Exchange",
            "version": "1",
            "chainId": 1337,
            "verifyingContract": "0x0000000000000000000000000000000000000000",
        },
        primary_type="Agent",
        types={
            "EIP712Domain": EIP712_DOMAIN_FIELDS,
            "Agent": [
                {"name": "source", "type": "string"},
                {"name": "connectionId", "type": "bytes32"},
            ],
        },
        message={"source": "a", "connectionId": "0x" + "00" * 32},
    )

    digest = eip712_encode_hash(typed_data.to_dict())

Past copyright:

.. code-block:: text

    Copyright (C) 2022 Judd Vinet <jvinet@zeroflux.org>
                       Uxío Fuentefría <uxio@safe.global>

    Permission is hereby granted, free of charge, to any person obtaining a copy of
    this software and associated documentation files (the "Software"), to deal in
    the Software without restriction, including without limitation the rights to
    use, copy, modify, merge, publish, distribute, sublicense, and/or sell copies
    of the Software, and to permit persons to whom the Software is furnished to do
    so, subject to the following conditions:

    The above copyright notice and this permission notice shall be included in all
    copies or substantial portions of the Software.

    THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR
    IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
    FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
    AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
    LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM,
    OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
    SOFTWARE.
"""

from dataclasses import dataclass, field
from typing import Any

from eth_abi import encode as encode_abi
from eth_typing import Hash32
from hexbytes import HexBytes
from web3 import Web3

from hyperliquid_signing.exceptions import SigningError

#: Field schema of the EIP-712 domain used by all Hyperliquid signatures
EIP712_DOMAIN_FIELDS = (
    {"name": "name", "type": "string"},
    {"name": "version", "type": "string"},
    {"name": "chainId", "type": "uint256"},
    {"name": "verifyingContract", "type": "address"},
)


@dataclass(frozen=True, slots=True)
class TypedData:
    """EIP-712 typed data for one signing call.

    Domain and types are fixed per action kind, only the message varies.
    """

    #: ``name``, ``version``, ``chainId``, ``verifyingContract``
    domain: dict[str, Any]

    #: Name of the signed struct, e.g. ``Agent`` or ``HyperliquidTransaction:UsdSend``
    primary_type: str

    #: Type name -> ordered list of ``{"name": ..., "type": ...}``
    types: dict[str, list[dict[str, str]]]

    #: Field name -> value. Keys not in the primary type schema are not signed.
    message: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Standard ``eth_signTypedData_v4`` JSON shape."""
        return {
            "types": {name: list(fields) for name, fields in self.types.items()},
            "domain": dict(self.domain),
            "primaryType": self.primary_type,
            "message": dict(self.message),
        }


@dataclass(frozen=True, slots=True)
class Signature:
    """ECDSA secp256k1 signature as the exchange expects it."""

    #: ``0x`` + 64 hex digits
    r: str
    #: ``0x`` + 64 hex digits
    s: str
    #: Recovery id + 27
    v: int

    def to_dict(self) -> dict[str, Any]:
        return {"r": self.r, "s": self.s, "v": self.v}


def fast_keccak(value: bytes) -> bytes:
    return Web3.keccak(value)


def encode_data(primary_type: str, data, types):
    """
    Encode structured data as per Ethereum's signTypeData_v4.

    https://docs.metamask.io/guide/signing-data.html#sign-typed-data-v4

    This code is ported from the Javascript "eth-sig-util" package.

    :raise SigningError:
        Missing field value or a value that does not encode as its declared type
    """
    encoded_types = ["bytes32"]
    encoded_values = [hash_type(primary_type, types)]

    def _encode_field(name, typ, value):
        if typ in types:
            if value is None:
                return [
                    "bytes32",
                    "0x0000000000000000000000000000000000000000000000000000000000000000",
                ]
            else:
                return ["bytes32", fast_keccak(encode_data(typ, value, types))]

        if value is None:
            raise SigningError(f"Missing value for field {name} of type {typ}")

        # Accept string bytes
        if "bytes" in typ and isinstance(value, str):
            try:
                value = HexBytes(value)
            except ValueError as e:
                raise SigningError(f"Field {name} is not hex: {value!r}") from e

        # Accept string uint and int, decimal or 0x hex
        if "int" in typ and isinstance(value, str):
            try:
                value = int(value, 16) if value.startswith("0x") else int(value)
            except ValueError as e:
                raise SigningError(f"Field {name} is not an integer: {value!r}") from e

        # Accept lowercase and checksummed addresses alike
        if typ == "address" and isinstance(value, str):
            try:
                value = Web3.to_checksum_address(value)
            except ValueError as e:
                raise SigningError(f"Field {name} is not an address: {value!r}") from e

        if typ == "bytes":
            return ["bytes32", fast_keccak(value)]

        if typ == "string":
            # Convert string to bytes.
            try:
                value = value.encode("utf-8")
            except AttributeError as e:
                raise SigningError(f"Could not encode field {name}: {typ}: {value}") from e
            return ["bytes32", fast_keccak(value)]

        if typ.endswith("]"):
            # Array type
            if value:
                parsed_type = typ[: typ.rindex("[")]
                type_value_pairs = [_encode_field(name, parsed_type, v) for v in value]
                data_types, data_hashes = zip(*type_value_pairs)
            else:
                # Empty array
                data_types, data_hashes = [], []

            h = fast_keccak(encode_abi(data_types, data_hashes))
            return ["bytes32", h]

        return [typ, value]

    if primary_type not in types:
        raise SigningError(f"Type {primary_type} is not registered in types: {list(types.keys())}")

    for field_def in types[primary_type]:
        name = field_def["name"]
        if name not in data:
            raise SigningError(f"Missing field {name} for {primary_type}")
        typ, val = _encode_field(name, field_def["type"], data[name])
        encoded_types.append(typ)
        encoded_values.append(val)

    try:
        return encode_abi(encoded_types, encoded_values)
    except Exception as e:
        # eth_abi raises its own EncodingError hierarchy and ValueError for unknown types
        raise SigningError(f"Could not ABI encode {primary_type}: {e}") from e


def encode_type(primary_type: str, types) -> str:
    result = ""
    deps = find_type_dependencies(primary_type, types)
    deps = sorted([d for d in deps if d != primary_type])
    deps = [primary_type] + deps
    for typ in deps:
        children = types.get(typ)
        if not children:
            raise SigningError(f"No type definition specified: {typ}")

        defs = [f"{t['type']} {t['name']}" for t in children]
        result += typ + "(" + ",".join(defs) + ")"
    return result


def find_type_dependencies(primary_type: str, types, results=None):
    if results is None:
        results = []

    # Strip array suffix. Hyperliquid type names contain a colon,
    # so we cannot split on non-word characters.
    primary_type = primary_type.split("[")[0]
    if primary_type in results or not types.get(primary_type):
        return results
    results.append(primary_type)

    for field_def in types[primary_type]:
        deps = find_type_dependencies(field_def["type"], types, results)
        for dep in deps:
            if dep not in results:
                results.append(dep)

    return results


def hash_type(primary_type: str, types) -> Hash32:
    return fast_keccak(encode_type(primary_type, types).encode())


def hash_struct(primary_type: str, data, types) -> Hash32:
    return fast_keccak(encode_data(primary_type, data, types))


def eip712_encode(typed_data: dict[str, Any]) -> list[bytes]:
    """
    Given a dict of structured data and types, return a 3-element list of
    the encoded, signable data.

      0: The magic & version (0x1901)
      1: The encoded types
      2: The encoded data
    """
    try:
        parts = [
            bytes.fromhex("1901"),
            hash_struct("EIP712Domain", typed_data["domain"], typed_data["types"]),
        ]
        if typed_data["primaryType"] != "EIP712Domain":
            parts.append(
                hash_struct(
                    typed_data["primaryType"],
                    typed_data["message"],
                    typed_data["types"],
                )
            )
        return parts
    except (KeyError, AttributeError, TypeError, IndexError) as exc:
        raise SigningError(f"Not valid {typed_data}") from exc


def eip712_encode_hash(typed_data: dict[str, Any]) -> Hash32:
    """
    :param typed_data: EIP712 structured data and types
    :return: Keccak256 hash of encoded signable data
    """
    return fast_keccak(b"".join(eip712_encode(typed_data)))
