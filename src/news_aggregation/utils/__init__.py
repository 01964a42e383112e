"""Utility helpers for news aggregation."""
