"""Utility helpers for topicstore."""
