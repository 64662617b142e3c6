"""Protocol interfaces for all batch_launchpad components."""

from batch_launchpad.interfaces.gateway import ChainGateway
from batch_launchpad.interfaces.launch import CreateResponse, LaunchCapability, LaunchInvoker
from batch_launchpad.interfaces.signer import TransactionSigner
from batch_launchpad.interfaces.store import ResultStore

__all__ = [
    "ChainGateway",
    "CreateResponse", "LaunchCapability", "LaunchInvoker",
    "TransactionSigner",
    "ResultStore",
]
