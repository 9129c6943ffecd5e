"""Document domain exceptions

Services raise these; routers translate them to HTTP responses.
"""


class DocumentError(Exception):
    """Base exception for document operations."""
    pass


class DocumentNotFoundError(DocumentError):
    """Document does not exist."""
    pass


class VersionNotFoundError(DocumentError):
    """Document version does not exist."""
    pass


class AccessDeniedError(DocumentError):
    """Actor is not allowed to read or modify the document."""
    pass


class InvalidAccessLevelError(DocumentError):
    """Unknown access level supplied on update."""
    pass


class VersionPendingScanError(DocumentError):
    """Version exists but has not been scanned yet."""
    pass


class VersionQuarantinedError(DocumentError):
    """Version was flagged as malicious and its content removed."""
    pass


class ScanEnqueueError(DocumentError):
    """Scan job could not be enqueued; the upload was rolled back."""
    pass


class InvalidUploadError(DocumentError):
    """Uploaded file is missing, empty, too large or of an unsupported type."""
    pass


class VersionConflictError(DocumentError):
    """Another upload took the same version number first; the caller may retry."""
    pass
