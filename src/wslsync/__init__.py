"""wslsync - Error classification and recovery for WSL <-> Windows sync."""

__version__ = "0.1.0"
