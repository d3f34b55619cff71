"""
Errors raised while turning webhooks into builds.
"""

class NotFoundError(Exception):
    """Raised when a project is missing, archived or of the wrong type."""
    pass

class ForbiddenError(Exception):
    """Raised when provider credentials required for a webhook are missing."""
    pass

class TransportError(Exception):
    """Raised when a provider API call fails. The caller may retry."""
    pass

class BuildConflictError(Exception):
    """Raised when a build for the same project/commit/environment/tag exists."""
    pass

class InvalidPayloadError(Exception):
    """Raised when a webhook body is not a JSON object."""
    pass

class QueueError(Exception):
    """Raised when a saved build could not be handed to the controller queue."""
    pass
