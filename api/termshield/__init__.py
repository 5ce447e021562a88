"""Termshield: dictionary term shielding around an external translation service."""

__version__ = "0.1.0"
