"""Logging configuration."""
