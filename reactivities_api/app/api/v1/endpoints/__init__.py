"""
Endpoint subpackage for the API.

Each module in this package defines an APIRouter for a specific
domain (activities, profiles, account, comments, info).  The REST
routers are aggregated in ``router.py`` at the package level; the
comments WebSocket router is included directly by the application.
"""
