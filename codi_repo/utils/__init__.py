"""Shared helpers."""

from codi_repo.utils.fanout import fan_out

__all__ = ["fan_out"]
