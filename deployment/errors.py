class DeploymentPipelineError(Exception):
    """Base class for all deployment pipeline failures."""


class ConfigurationError(DeploymentPipelineError, ValueError):
    """Raised when a static constant or the deployment parameters are missing or malformed."""


class MissingConfigError(ConfigurationError):
    """Raised when a configuration path is absent for a network."""


class ResolutionError(DeploymentPipelineError):
    """Raised when a reference names an unresolved or non-existent component."""


class DeploymentError(DeploymentPipelineError):
    """Raised when the network rejects a deployment, attachment or approval."""


class NotFoundError(DeploymentError):
    """Raised when an address holds no component of the expected type."""


class PersistenceError(DeploymentPipelineError):
    """Raised when a manifest cannot be written."""
