"""Error types shared by services, providers and API routes."""


class CollaboratorError(Exception):
    """Base error for failures inside an external collaborator."""


class PersistenceError(CollaboratorError):
    """Raised when the relational store cannot complete an operation."""


class DeliveryError(CollaboratorError):
    """Raised when an outbound message or image cannot be delivered."""


class CodeGenerationError(CollaboratorError):
    """Raised when a QR code image cannot be rendered."""


class MediaError(CollaboratorError):
    """Raised when a stored broadcast image cannot be read."""


class DuplicateConflictError(Exception):
    """Raised when a unique record (reservation, organizer) already exists."""


class NoActiveEventError(LookupError):
    """Raised when an operation requires an active event and none exists."""
