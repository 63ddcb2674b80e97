"""Kudos engine: employee recognition points, rewards and redemptions."""

__version__ = "1.0.0"
