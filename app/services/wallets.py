import logging
from dataclasses import dataclass, field

from eth_account import Account

logger = logging.getLogger("Wallets")


@dataclass(frozen=True)
class WalletCredentials:
    """A freshly minted EVM key pair. The private key is excluded from repr."""

    address: str
    private_key: str = field(repr=False)


def generate_wallet() -> WalletCredentials:
    """
    Mints a new key pair from the OS CSPRNG.

    Nothing is persisted here: the caller stores the private key inside the
    exchange configuration it creates, and must surface the address so the
    user can fund it.
    """
    account = Account.create()
    private_key = account.key.hex()
    if not private_key.startswith("0x"):
        private_key = "0x" + private_key

    logger.info(f"🔑 Generated new trading wallet {account.address}")
    return WalletCredentials(address=account.address, private_key=private_key)
