"""
Managers module - Docker-backed managers.

- BaseManager: Common Docker client utilities
- NodeManager: Safrochain validator container management
"""

from safrobox.commands.managers.base import BaseManager
from safrobox.commands.managers.node import NodeManager

__all__ = [
    "BaseManager",
    "NodeManager",
]
