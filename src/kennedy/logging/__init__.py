from .logging import configure, get_configured_level, get_logger, log_file_path, reset_logger

__all__ = ["configure", "get_logger", "reset_logger", "get_configured_level", "log_file_path"]
