"""
Pydantic schema definitions for API payloads.

Each domain (activities, comments, profiles, account) defines its own
models for request and response bodies.  Schemas are separated from
the database rows to decouple the API representation from persistence.
"""
