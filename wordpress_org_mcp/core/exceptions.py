"""
Custom Exception Hierarchy for the WordPress.org MCP Server

Provides specific exception types for the tool layer. Each exception carries
the MCP error code the server reports when the exception escapes a tool call.

The plugin comparison core never raises these: filesystem problems there are
represented in the comparison result instead.
"""

from mcp.types import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
)


class AppException(Exception):
    """Base exception for all application errors."""
    error_code = INTERNAL_ERROR

    def __init__(self, message: str, details: dict = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


# ============================================================================
# VALIDATION ERRORS (INVALID_PARAMS)
# ============================================================================

class ValidationError(AppException):
    """Raised when tool argument validation fails."""
    error_code = INVALID_PARAMS


class MissingArgumentError(ValidationError):
    """Raised when a required tool argument is missing or empty."""
    pass


class InvalidArgumentError(ValidationError):
    """Raised when a tool argument has the wrong type or value."""
    pass


# ============================================================================
# TOOL ERRORS
# ============================================================================

class ToolExecutionError(AppException):
    """Raised when tool execution fails."""
    error_code = INTERNAL_ERROR


class ToolNotFoundError(ToolExecutionError):
    """Raised when requested tool does not exist."""
    error_code = METHOD_NOT_FOUND


# ============================================================================
# PLUGIN ERRORS (INVALID_REQUEST)
# ============================================================================

class PluginError(AppException):
    """Base exception for plugin lookups that cannot be satisfied."""
    error_code = INVALID_REQUEST


class PluginNotFoundError(PluginError):
    """Raised when WordPress.org has no plugin with the given slug."""
    pass


class PluginDownloadError(PluginError):
    """Raised when a plugin ZIP could not be downloaded."""
    pass


class PluginNotExtractedError(PluginError):
    """Raised when a plugin has not been extracted yet."""
    pass


class PluginFileNotFoundError(PluginError):
    """Raised when a file is missing from a plugin or from a comparison."""
    pass


class ExtractionError(AppException):
    """Raised when a plugin archive cannot be extracted."""
    error_code = INTERNAL_ERROR


# ============================================================================
# CONFIGURATION ERRORS
# ============================================================================

class ConfigurationError(AppException):
    """Raised when configuration is invalid or missing."""
    error_code = INTERNAL_ERROR


class InvalidConfigurationError(ConfigurationError):
    """Raised when configuration value is invalid."""
    pass


# ============================================================================
# HELPER FUNCTIONS
# ============================================================================

def get_exception_details(exception: Exception) -> dict:
    """
    Extract details from exception for logging/response.

    Args:
        exception: The exception to extract details from

    Returns:
        Dictionary with exception details
    """
    if isinstance(exception, AppException):
        return {
            "type": exception.__class__.__name__,
            "message": exception.message,
            "code": exception.error_code,
            "details": exception.details
        }
    else:
        return {
            "type": exception.__class__.__name__,
            "message": str(exception),
            "code": INTERNAL_ERROR,
            "details": {}
        }
