"""Bot support: transcript reconstruction, document text and prompt assembly."""

from .transcript import classify_role, unwrap_message

__all__ = ["classify_role", "unwrap_message"]
