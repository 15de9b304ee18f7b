"""
Custom exceptions for the web-audit library.
"""


class WebAuditError(Exception):
    """Base exception for all library errors."""
    pass


class ConfigurationError(WebAuditError):
    """Raised when configuration is invalid."""
    pass


class ValidationError(WebAuditError):
    """Raised when a configuration file cannot be parsed or validated."""
    pass


class CaptureError(WebAuditError):
    """Raised when a captured tenant/token pair cannot be written."""
    pass


class BrowserError(WebAuditError):
    """Raised when the browser orchestration fails."""
    pass


class NavigationError(BrowserError):
    """Raised when a page cannot be reached after all retry attempts."""
    pass


class LoginError(BrowserError):
    """Raised when the login form cannot be located or submitted."""
    pass
