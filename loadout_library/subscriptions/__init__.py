"""Subscription store for profiles and plugin templates."""

from .store import SubscriptionStore

__all__ = ["SubscriptionStore"]
