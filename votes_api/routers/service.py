"""API information, health check and Prometheus endpoints."""
from __future__ import annotations

import time

from fastapi import APIRouter, Request
from fastapi.responses import Response

router = APIRouter(tags=["service"])

ENDPOINTS = {
    "GET /": "API information",
    "GET /votes": "Get all votes",
    "GET /votes/:id": "Get vote by ID",
    "POST /votes": "Create a new vote (requires: title, content)",
    "PUT /votes/:id": "Update a vote",
    "DELETE /votes/:id": "Delete a vote",
    "GET /health": "Health check",
    "GET /metrics": "Prometheus metrics",
    "GET /ui/": "Browser UI",
}


@router.get("/")
def api_info():
    return {"message": "Voting System API", "endpoints": ENDPOINTS}


@router.get("/health")
def health():
    return {"status": "UP", "timestamp": int(time.time() * 1000)}


@router.get("/metrics")
def metrics(request: Request):
    collector = getattr(request.app.state, "metrics", None)
    if collector is None:
        return Response("metrics disabled\n", status_code=404, media_type="text/plain")
    body, content_type = collector.render()
    return Response(body, media_type=content_type)
