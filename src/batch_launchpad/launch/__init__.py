"""Per-wallet token launch."""

from batch_launchpad.launch.client import HttpLaunchCapability, LaunchServiceError
from batch_launchpad.launch.invoker import RetryingLaunchInvoker

__all__ = ["HttpLaunchCapability", "LaunchServiceError", "RetryingLaunchInvoker"]
