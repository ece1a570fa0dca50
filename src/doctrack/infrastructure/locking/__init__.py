"""Ingestion lock registries."""
