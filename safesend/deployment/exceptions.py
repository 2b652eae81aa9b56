"""Errors raised while deploying and verifying contracts"""


class SafeSendDeploymentError(Exception):
    """Base class for every deployment script error"""


class ConfigurationError(SafeSendDeploymentError):
    """Environment or command line settings are invalid"""


class DeploymentError(SafeSendDeploymentError):
    """The contract factory could not be built or the deploy tx was rejected"""


class ArtifactError(DeploymentError):
    """A compiled build artifact is missing or malformed"""


class ConfirmationTimeoutError(SafeSendDeploymentError):
    """The provider failed or timed out while waiting for confirmations"""


class VerificationError(SafeSendDeploymentError):
    """The block explorer refused or failed to verify the contract"""
