"""Utility helpers for branchdocs."""
