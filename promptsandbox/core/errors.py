"""Project error hierarchy."""


class PromptSandboxError(Exception):
    """Base error."""


class ConfigurationError(PromptSandboxError):
    """Raised before any dispatch when the request cannot be served at all."""


class NoModelsSelectedError(ConfigurationError):
    """None of the requested model ids is known to the registry."""


class NoCompatibleModelsError(ConfigurationError):
    """Attachment filtering left zero models to dispatch to."""


class RegistryError(PromptSandboxError):
    """Raised when a model registry file cannot be loaded."""


class InsecureTransportError(PromptSandboxError):
    """Raised when the gateway endpoint does not use https."""


class GatewayUnreachableError(PromptSandboxError):
    """Raised when the gateway call fails at the transport level."""


class AttachmentReadError(PromptSandboxError):
    """Raised when a text-like attachment cannot be decoded."""
