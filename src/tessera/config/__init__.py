"""
Configuration module.
Exports the settings singleton shared by every Tessera module.
"""
from .settings import settings

__all__ = ["settings"]
