# menu_portal/exceptions.py
"""
Domain errors raised by the services. main.py turns them into
`{"detail": ...}` JSON responses with the matching status code.
"""

class PortalError(Exception):
    status_code = 500
    default_detail = "Internal server error"

    def __init__(self, detail: str | None = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)

class ValidationFailed(PortalError):
    status_code = 400
    default_detail = "Invalid request"

class AuthenticationRequired(PortalError):
    status_code = 401
    default_detail = "Missing credentials"

class AccessDenied(PortalError):
    status_code = 403
    default_detail = "Invalid credentials"

class FileNotFound(PortalError):
    status_code = 404
    default_detail = "File not found"

class PayloadTooLarge(PortalError):
    status_code = 413
    default_detail = "File too large"

class UnsupportedMediaType(PortalError):
    status_code = 415
    default_detail = "Unsupported file type"

class FeatureDisabled(PortalError):
    status_code = 503
    default_detail = "This feature is disabled"

class PackagingFailed(PortalError):
    status_code = 500
    default_detail = "Failed to generate files"
