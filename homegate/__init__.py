"""homegate - Fritz!Box device usage monitor and policy enforcer."""

__version__ = "0.1.0"
