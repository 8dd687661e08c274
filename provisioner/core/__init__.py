"""Core domain: models, services, configuration, observability."""
