"""Pricing normalization and validation engine for the model catalog."""

__version__ = "0.1.0"
