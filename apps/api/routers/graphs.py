"""
Router for knowledge graph CRUD.
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from routers.auth_scope import get_token_username, resolve_username
from services.graph_store import create_graph, get_graph, recent_graphs, update_graph

router = APIRouter()
logger = logging.getLogger(__name__)


class CreateGraphRequest(BaseModel):
    name: Optional[str] = None
    username: Optional[str] = None


class UpdateGraphRequest(BaseModel):
    nodes: Optional[List[Dict[str, Any]]] = None
    edges: Optional[List[Dict[str, Any]]] = None
    name: Optional[str] = None


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@router.post("")
async def create_graph_endpoint(
    request: CreateGraphRequest,
    token_username: Optional[str] = Depends(get_token_username),
    db: AsyncSession = Depends(get_db),
):
    """Create an empty graph owned by the acting user."""
    if not (request.name or "").strip():
        return _error(400, "Name is required")
    try:
        graph_id = await create_graph(db, request.name, resolve_username(token_username, request.username))
    except Exception:
        logger.exception("Failed to create graph name=%s", request.name)
        return _error(500, "Failed to create graph")
    return {"id": graph_id, "message": "Graph created"}


@router.get("/recent")
async def list_recent_graphs(
    username: Optional[str] = None,
    limit: int = Query(default=10, ge=1, le=100),
    token_username: Optional[str] = Depends(get_token_username),
    db: AsyncSession = Depends(get_db),
):
    """Most recently updated graphs, optionally for one user."""
    owner = token_username or (username or "").strip() or None
    try:
        return await recent_graphs(db, limit=limit, username=owner)
    except Exception:
        logger.exception("Failed to fetch recent graphs username=%s", owner)
        return _error(500, "Failed to fetch recent graphs")


@router.get("/{graph_id}")
async def get_graph_endpoint(graph_id: str, db: AsyncSession = Depends(get_db)):
    try:
        graph = await get_graph(db, graph_id)
    except Exception:
        logger.exception("Failed to load graph %s", graph_id)
        return _error(500, "Failed to load graph")
    if graph is None:
        return _error(404, "Graph not found")
    return graph


@router.put("/{graph_id}")
async def update_graph_endpoint(
    graph_id: str,
    request: UpdateGraphRequest,
    db: AsyncSession = Depends(get_db),
):
    """Replace the graph's nodes and edges; rename it when a name is given."""
    if request.nodes is None or request.edges is None:
        return _error(400, "Nodes and edges are required")
    try:
        await update_graph(db, graph_id, request.nodes, request.edges, request.name)
    except LookupError:
        return _error(404, "Graph not found")
    except Exception:
        logger.exception("Failed to update graph %s", graph_id)
        return _error(500, "Failed to update graph")
    return {"message": "Graph updated"}
