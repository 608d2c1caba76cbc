"""Core components for the Jibit Identity SDK.

Token lifecycle and request protocol shared between the sync and async
clients.
"""

from __future__ import annotations

from .dispatcher import AsyncRequestDispatcher, RequestDispatcher
from .errors import ErrorFactory
from .http_executor import AsyncHTTPExecutor, SyncHTTPExecutor
from .token_manager import AsyncTokenManager, TokenManager
from .token_ops import TokenOperations

__all__ = [
    "ErrorFactory",
    "TokenOperations",
    "TokenManager",
    "AsyncTokenManager",
    "RequestDispatcher",
    "AsyncRequestDispatcher",
    "SyncHTTPExecutor",
    "AsyncHTTPExecutor",
]
