"""Small helpers shared by quitguard hosts."""

from .alloc import checked_alloc, checked_alloc_records

__all__ = ["checked_alloc", "checked_alloc_records"]
