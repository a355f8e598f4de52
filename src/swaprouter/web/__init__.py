"""Web layer: request/response contracts and use-case services."""
