"""Delegation REST routers."""

from .delegation_router import router as delegation_router, unwrap_or_raise

__all__ = ["delegation_router", "unwrap_or_raise"]
