"""Stellar integration components."""

from batch_launchpad.stellar.gateway import HorizonChainGateway, NETWORK_PASSPHRASES
from batch_launchpad.stellar.signer import KeypairSigner

__all__ = ["HorizonChainGateway", "KeypairSigner", "NETWORK_PASSPHRASES"]
