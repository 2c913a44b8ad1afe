from . import excel, health

__all__ = ["excel", "health"]
