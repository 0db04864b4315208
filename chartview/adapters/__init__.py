from .records import to_records

__all__ = ["to_records"]
