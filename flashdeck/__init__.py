"""
Application package for the Flashdeck backend.

It exposes subpackages for API routers, core utilities,
domain models, service layer abstractions, and repositories.
"""
