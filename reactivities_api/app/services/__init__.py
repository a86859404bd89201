"""
Service layer.

Each service encapsulates the business logic of one domain
(activities, comments, profiles, accounts) on top of the SQLite
database in ``core.db``.  External collaborators, email delivery and
photo storage, sit behind small interfaces so that API handlers and
tests can swap them through FastAPI dependencies.
"""
