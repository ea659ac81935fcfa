"""Scorebook live stat-entry service."""
