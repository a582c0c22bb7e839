from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import APIRouter, Body, Request
from fastapi.responses import JSONResponse

from votes_api.repositories.json_storage import PersistenceError
from votes_api.services.vote_service import NotFoundError, ValidationError, VoteStore

router = APIRouter(prefix="/votes", tags=["votes"])
logger = logging.getLogger(__name__)


def _get_vote_store(request: Request) -> VoteStore:
    store = getattr(getattr(request.app, "state", None), "vote_store", None)
    if store is None:
        raise RuntimeError("VoteStore not configured")
    return store


def _strict_not_found(request: Request) -> bool:
    settings = getattr(request.app.state, "settings", None)
    return bool(settings and settings.strict_not_found)


def _parse_id(value: str) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _as_object(payload: Any) -> dict:
    # Bodies that are not JSON objects carry no fields, so validation sees them as empty.
    return payload if isinstance(payload, dict) else {}


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


def _storage_error(exc: PersistenceError) -> JSONResponse:
    logger.error("Storage error: %s", exc, exc_info=exc)
    return _error("Storage error", 500)


@router.post("")
def create_vote(request: Request, payload: Any = Body(None)):
    store = _get_vote_store(request)
    payload = _as_object(payload)
    try:
        record = store.create(payload.get("title"), payload.get("content"))
    except ValidationError as exc:
        return _error(str(exc), 400)
    except PersistenceError as exc:
        return _storage_error(exc)
    return JSONResponse(record.to_dict(), status_code=201)


@router.get("")
def list_votes(request: Request):
    store = _get_vote_store(request)
    return [record.to_dict() for record in store.list()]


@router.get("/{vote_id}")
def get_vote(vote_id: str, request: Request):
    store = _get_vote_store(request)
    parsed = _parse_id(vote_id)
    try:
        if parsed is None:
            raise NotFoundError(vote_id)
        return store.get(parsed).to_dict()
    except NotFoundError:
        if _strict_not_found(request):
            return _error("Vote not found", 404)
        # Historical contract: unknown ids answer 200 with an empty object.
        return {}


@router.put("/{vote_id}")
def update_vote(vote_id: str, request: Request, payload: Any = Body(None)):
    store = _get_vote_store(request)
    payload = _as_object(payload)
    parsed = _parse_id(vote_id)
    if parsed is None:
        return _error("Vote not found", 404)
    try:
        store.update(parsed, payload.get("title"), payload.get("content"))
    except NotFoundError:
        return _error("Vote not found", 404)
    except ValidationError as exc:
        return _error(str(exc), 400)
    except PersistenceError as exc:
        return _storage_error(exc)
    return {"message": "Vote updated"}


@router.delete("/{vote_id}")
def delete_vote(vote_id: str, request: Request):
    store = _get_vote_store(request)
    parsed = _parse_id(vote_id)
    if parsed is None:
        return _error("Vote not found", 404)
    try:
        store.delete(parsed)
    except NotFoundError:
        return _error("Vote not found", 404)
    except PersistenceError as exc:
        return _storage_error(exc)
    return {"message": "Vote deleted"}
