"""Shared helpers for logging, error payloads and clinical date math."""
