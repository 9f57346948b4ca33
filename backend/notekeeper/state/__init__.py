from .store import AppState, Notice

__all__ = ["AppState", "Notice"]
