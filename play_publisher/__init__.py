"""Publish Android artifacts to Google Play through the Publishing API."""

__version__ = "1.0.0"
