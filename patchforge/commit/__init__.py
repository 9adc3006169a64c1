from .apply import apply_replacement

__all__ = ["apply_replacement"]
