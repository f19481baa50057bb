from .exceptions import (
    AppException,
    ConfigurationError,
    ExtractionError,
    InvalidArgumentError,
    InvalidConfigurationError,
    MissingArgumentError,
    PluginDownloadError,
    PluginError,
    PluginFileNotFoundError,
    PluginNotExtractedError,
    PluginNotFoundError,
    ToolExecutionError,
    ToolNotFoundError,
    ValidationError,
    get_exception_details,
)

__all__ = [
    "AppException",
    "ConfigurationError",
    "ExtractionError",
    "InvalidArgumentError",
    "InvalidConfigurationError",
    "MissingArgumentError",
    "PluginDownloadError",
    "PluginError",
    "PluginFileNotFoundError",
    "PluginNotExtractedError",
    "PluginNotFoundError",
    "ToolExecutionError",
    "ToolNotFoundError",
    "ValidationError",
    "get_exception_details",
]
