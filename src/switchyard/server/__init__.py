"""ASGI server layer: request handling, error mapping, negotiation, sending."""
