from __future__ import annotations

from .client import BackendError, BackendServer, invoke
from .provider import DashboardBackend

__all__ = ["BackendError", "BackendServer", "DashboardBackend", "invoke"]
