"""Shared utilities: logging, paths and environment configuration."""
