"""API routes."""

from . import control, observability, wechat

__all__ = ["control", "observability", "wechat"]
