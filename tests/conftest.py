"""Shared pytest fixtures for signing tests.

All keys here are well-known development keys. Never fund them.
"""

import pytest
from eth_account import Account
from eth_account.signers.local import LocalAccount


@pytest.fixture(scope="session")
def private_key() -> str:
    """Anvil account #0 private key."""
    return "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"


@pytest.fixture(scope="session")
def wallet(private_key) -> LocalAccount:
    return Account.from_key(private_key)


@pytest.fixture(scope="session")
def co_signer() -> LocalAccount:
    """Anvil account #1, used as a second multi-sig signer."""
    return Account.from_key("0x59c6995e998f97a5a0044966f0945389dc9e86dae88c7a8412f4603b6b78690d")


@pytest.fixture(scope="session")
def vault_address() -> str:
    return "0x1719884eb866cb12b2287399b15f7db5e7d775ea"


@pytest.fixture(scope="session")
def nonce() -> int:
    """Fixed millisecond timestamp."""
    return 1_700_000_000_000
