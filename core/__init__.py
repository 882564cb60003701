"""Shared command execution, configuration loading and console helpers."""
