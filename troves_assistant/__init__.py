"""Troves.fi assistant: HTTP API and chat bots over Troves vaults and strategies."""

__version__ = "0.1.0"
