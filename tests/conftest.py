"""
Shared test fixtures and configuration.

Unit tests need nothing here. Integration tests find their database through
the same settings as the application (DATABASE_URL / .env).
"""
