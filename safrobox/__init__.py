"""
Safrobox - Run and operate a Safrochain validator node in Docker.
"""

__version__ = "0.1.0"
