"""CLI commands."""

from .behat import behat

__all__ = ["behat"]
