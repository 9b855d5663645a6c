"""Trusted reference network backend."""
