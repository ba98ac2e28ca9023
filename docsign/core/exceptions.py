"""
Domain exceptions for the document lifecycle and signing protocol.

Every exception here is recoverable at the request boundary; the
application maps ``status_code`` and ``code`` onto the error response.
"""


class DocSignError(Exception):
    """Base exception for docsign domain operations"""

    status_code = 500
    default_code = "DOCSIGN_ERROR"

    def __init__(self, message: str, code: str = None, details: dict = None):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.details = details or {}


class ValidationError(DocSignError):
    """Raised when required input is missing or malformed"""

    status_code = 400
    default_code = "VALIDATION_ERROR"


class InvalidFormat(DocSignError):
    """Raised when a structured sub-payload cannot be parsed"""

    status_code = 400
    default_code = "INVALID_FORMAT"


class NotFound(DocSignError):
    """Raised when a referenced document or user does not exist"""

    status_code = 404
    default_code = "NOT_FOUND"

    def __init__(self, resource: str, resource_id=None, **kwargs):
        message = f"{resource} not found"
        if resource_id is not None:
            message += f": {resource_id}"
        super().__init__(message, **kwargs)
        self.resource = resource
        self.resource_id = resource_id


class SignerNotFound(DocSignError):
    """Raised when a signer email does not resolve to an active signer"""

    status_code = 400
    default_code = "SIGNER_NOT_FOUND"

    def __init__(self, email: str, **kwargs):
        super().__init__(f"Signer not found or not active: {email}", **kwargs)
        self.email = email


class Forbidden(DocSignError):
    """Raised when the principal lacks the relationship an action requires"""

    status_code = 403
    default_code = "FORBIDDEN"

    def __init__(self, message: str = "Access denied", **kwargs):
        super().__init__(message, **kwargs)


class InvalidState(DocSignError):
    """Raised when an action is not permitted in the document's status"""

    status_code = 409
    default_code = "INVALID_STATE"

    def __init__(self, message: str, current_status: str = None, **kwargs):
        super().__init__(message, **kwargs)
        self.current_status = current_status


class AlreadySigned(DocSignError):
    """Raised when signing is attempted on a document that is not pending"""

    status_code = 409
    default_code = "ALREADY_SIGNED"

    def __init__(self, document_id=None, **kwargs):
        message = "Document has already been signed"
        if document_id is not None:
            message = f"Document {document_id} has already been signed"
        super().__init__(message, **kwargs)
        self.document_id = document_id


class StorageError(DocSignError):
    """Raised when a blob store call fails"""

    status_code = 502
    default_code = "STORAGE_ERROR"

    def __init__(self, message: str, object_id: str = None, **kwargs):
        super().__init__(message, **kwargs)
        self.object_id = object_id
