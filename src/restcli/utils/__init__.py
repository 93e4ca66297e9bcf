"""Shared helpers for restcli."""
