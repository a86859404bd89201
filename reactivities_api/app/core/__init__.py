"""
Cross-cutting infrastructure: configuration, logging, database access,
security and application exceptions.
"""
