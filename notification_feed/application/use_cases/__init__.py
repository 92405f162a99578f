"""Aggregate application use cases."""

from .notifications import NotificationSession

__all__ = ["NotificationSession"]
