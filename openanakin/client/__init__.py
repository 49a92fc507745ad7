"""Backend clients."""

from .anakin import AnakinClient, format_httpx_error

__all__ = ["AnakinClient", "format_httpx_error"]
