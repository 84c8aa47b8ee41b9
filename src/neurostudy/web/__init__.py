"""Web API."""
