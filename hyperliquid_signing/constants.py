"""Constants for Hyperliquid action signing.

Values that are part of the exchange signing contract. Changing any of them
produces signatures the exchange rejects.
"""

from eth_typing import HexAddress

#: Hyperliquid mainnet API endpoint
MAINNET_API_URL = "https://api.hyperliquid.xyz"

#: Hyperliquid testnet API endpoint
TESTNET_API_URL = "https://api.hyperliquid-testnet.xyz"

#: Local node API endpoint
LOCAL_API_URL = "http://localhost:3001"

#: Zero address used as ``verifyingContract`` in all Hyperliquid EIP-712 domains
ZERO_ADDRESS: HexAddress = HexAddress("0x0000000000000000000000000000000000000000")

#: Chain id written into user-signed actions as ``signatureChainId``.
#:
#: Arbitrum Sepolia (421614). The exchange accepts any chain id here
#: as long as the EIP-712 domain uses the same value.
DEFAULT_SIGNATURE_CHAIN_ID = "0x66eee"

#: EIP-712 domain name for exchange-native (L1) actions
L1_DOMAIN_NAME = "Exchange"

#: EIP-712 domain version for L1 actions
L1_DOMAIN_VERSION = "1"

#: EIP-712 chain id for L1 actions.
#:
#: Fixed, independent of the network the action targets.
L1_DOMAIN_CHAIN_ID = 1337

#: EIP-712 domain name for directly user-signed actions
USER_SIGNED_DOMAIN_NAME = "HyperliquidSignTransaction"

#: EIP-712 domain version for user-signed actions
USER_SIGNED_DOMAIN_VERSION = "1"

#: Phantom agent ``source`` tag for mainnet
MAINNET_SOURCE = "a"

#: Phantom agent ``source`` tag for testnet
TESTNET_SOURCE = "b"

#: ``hyperliquidChain`` value for mainnet user-signed actions
MAINNET_CHAIN_NAME = "Mainnet"

#: ``hyperliquidChain`` value for testnet user-signed actions
TESTNET_CHAIN_NAME = "Testnet"

#: Decimal places used when formatting prices and sizes for the wire
WIRE_DECIMALS = 8

#: Decimal places of fixed-point integers used in hashed numeric fields
HASHING_DECIMALS = 8

#: Decimal places of USD fixed-point integers, e.g. isolated margin ``ntli``
USD_DECIMALS = 6

#: Action types that are never executed on behalf of a vault.
#:
#: The exchange payload omits ``vaultAddress`` for these.
VAULT_EXCLUDED_ACTION_TYPES = frozenset(["usdClassTransfer", "sendAsset"])
