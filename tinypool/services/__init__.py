"""Services for tinypool module."""
from .keys import KeyPool, load_keys, mask_key
from .reports import FileReportWriter
from .tinify_client import TinifyClient

__all__ = [
    "KeyPool",
    "load_keys",
    "mask_key",
    "FileReportWriter",
    "TinifyClient",
]
