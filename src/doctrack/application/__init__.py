"""Application layer: use cases, ports, DTOs."""
