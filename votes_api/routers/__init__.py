"""
FastAPI routers grouped by concern (votes CRUD, service endpoints).

Each module exposes an APIRouter that the app factory includes.
"""
