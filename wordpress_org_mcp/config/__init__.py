from .config import ConfigManager

__all__ = ["ConfigManager"]
