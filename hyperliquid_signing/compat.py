"""eth_account / web3 v6/v7 compatibility.

web3.py v7 ships with ``eth_account`` 0.13+, which renamed
``signHash`` to ``unsafe_sign_hash``.
"""

from importlib.metadata import version

from eth_account.datastructures import SignedMessage
from eth_account.signers.local import LocalAccount
from packaging.version import Version

pkg_version = version("web3")
WEB3_PY_V7 = Version(pkg_version) >= Version("7.0.0")


def sign_hash_compat(account: LocalAccount, message_hash: bytes) -> SignedMessage:
    """Sign a raw 32-byte digest with v6/v7 compatibility.

    :param account:
        Local account holding the private key.

    :param message_hash:
        Already hashed EIP-712 digest.

    :return:
        Signed message with ``r``, ``s`` and ``v`` (27 or 28).
    """
    if WEB3_PY_V7:
        return account.unsafe_sign_hash(message_hash)
    else:
        return account.signHash(message_hash)
