"""Typed async client for the BIND Open-Banking API.

The client lives in :mod:`bindapi.core`; this module keeps the short import
path ``from bindapi import BindClient`` working.
"""

from .core import (
    ApiErrorInfo,
    BindAPIError,
    BindAuthenticationError,
    BindClient,
    BindEnvironment,
    BindTransportError,
)

__version__ = "0.1.0"

__all__ = [
    "BindClient",
    "BindEnvironment",
    "ApiErrorInfo",
    "BindAPIError",
    "BindAuthenticationError",
    "BindTransportError",
]
