from .horizon import HorizonClient

__all__ = ["HorizonClient"]
