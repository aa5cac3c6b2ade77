"""Fees: разделение gross суммы между платформой, проектом, роялти и продавцом."""

from .distributor import FeeDistributor, FeeRecipients, split

__all__ = [
    "FeeDistributor",
    "FeeRecipients",
    "split",
]
