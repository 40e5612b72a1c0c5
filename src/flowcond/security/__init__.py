from .display import sanitize_for_display

__all__ = ["sanitize_for_display"]
