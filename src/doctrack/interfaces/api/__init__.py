"""Falcon ASGI API."""
