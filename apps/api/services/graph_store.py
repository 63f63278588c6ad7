"""Persistence for knowledge graphs, their topic nodes and relation edges."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from models.graph import Graph
from models.graph_edge import GraphEdge
from models.graph_node import GraphNode
from services.expiration import as_utc

DEFAULT_GRAPH_NAME = "Untitled Graph"
DEFAULT_EDGE_TYPE = "causal"


def _iso(value: Optional[datetime]) -> Optional[str]:
    value = as_utc(value)
    return value.isoformat() if value else None


def _float(value: Any) -> float:
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0.0


def _serialize_node(node: GraphNode) -> Dict[str, Any]:
    return {
        "id": node.id,
        "label": node.label,
        "description": node.description or "",
        "category": node.category,
        "x": node.x,
        "y": node.y,
        "z": node.z,
    }


def _serialize_edge(edge: GraphEdge) -> Dict[str, Any]:
    return {
        "id": edge.id,
        "from": edge.from_node,
        "to": edge.to_node,
        "edgeType": edge.type,
        "label": edge.label or "",
    }


def _build_nodes(graph_id: str, nodes: Iterable[Dict[str, Any]]) -> List[GraphNode]:
    # Later duplicates of an id replace earlier ones.
    by_id: Dict[str, GraphNode] = {}
    for raw in nodes:
        node_id = str(raw.get("id", "")).strip()
        if not node_id:
            continue
        by_id[node_id] = GraphNode(
            graph_id=graph_id,
            id=node_id,
            label=raw.get("label"),
            description=raw.get("description") or "",
            category=raw.get("category"),
            x=_float(raw.get("x")),
            y=_float(raw.get("y")),
            z=_float(raw.get("z")),
        )
    return list(by_id.values())


def _build_edges(graph_id: str, edges: Iterable[Dict[str, Any]]) -> List[GraphEdge]:
    by_id: Dict[str, GraphEdge] = {}
    for raw in edges:
        source = raw.get("from")
        target = raw.get("to")
        if source is None or target is None:
            continue
        edge_id = str(raw.get("id") or uuid.uuid4())
        by_id[edge_id] = GraphEdge(
            graph_id=graph_id,
            id=edge_id,
            from_node=str(source),
            to_node=str(target),
            type=raw.get("edgeType") or DEFAULT_EDGE_TYPE,
            label=raw.get("label") or "",
        )
    return list(by_id.values())


async def create_graph(db: AsyncSession, name: Optional[str], username: str) -> str:
    now = datetime.now(timezone.utc)
    graph = Graph(
        id=str(uuid.uuid4()),
        name=(name or "").strip() or DEFAULT_GRAPH_NAME,
        username=username,
        created_at=now,
        updated_at=now,
    )
    db.add(graph)
    await db.commit()
    return graph.id


async def get_graph(db: AsyncSession, graph_id: str) -> Optional[Dict[str, Any]]:
    graph = await db.get(Graph, graph_id)
    if graph is None:
        return None

    node_rows = await db.execute(select(GraphNode).where(GraphNode.graph_id == graph_id))
    edge_rows = await db.execute(select(GraphEdge).where(GraphEdge.graph_id == graph_id))
    return {
        "id": graph.id,
        "name": graph.name,
        "username": graph.username,
        "created_at": _iso(graph.created_at),
        "updated_at": _iso(graph.updated_at),
        "nodes": [_serialize_node(node) for node in node_rows.scalars().all()],
        "edges": [_serialize_edge(edge) for edge in edge_rows.scalars().all()],
    }


async def update_graph(
    db: AsyncSession,
    graph_id: str,
    nodes: List[Dict[str, Any]],
    edges: List[Dict[str, Any]],
    name: Optional[str] = None,
) -> None:
    """Replace a graph's nodes and edges in one transaction."""
    graph = await db.get(Graph, graph_id)
    if graph is None:
        raise LookupError(f"Graph {graph_id} not found")

    try:
        if name and name.strip():
            graph.name = name.strip()
        graph.updated_at = datetime.now(timezone.utc)
        await db.execute(
            delete(GraphNode)
            .where(GraphNode.graph_id == graph_id)
            .execution_options(synchronize_session=False)
        )
        await db.execute(
            delete(GraphEdge)
            .where(GraphEdge.graph_id == graph_id)
            .execution_options(synchronize_session=False)
        )
        db.add_all(_build_nodes(graph_id, nodes))
        db.add_all(_build_edges(graph_id, edges))
        await db.commit()
    except Exception:
        await db.rollback()
        raise


async def recent_graphs(
    db: AsyncSession,
    limit: int = 10,
    username: Optional[str] = None,
) -> List[Dict[str, Any]]:
    query = select(Graph.id, Graph.name, Graph.updated_at, Graph.username)
    if username:
        query = query.where(Graph.username == username)
    result = await db.execute(query.order_by(Graph.updated_at.desc()).limit(limit))
    return [
        {
            "id": row.id,
            "name": row.name,
            "updated_at": _iso(row.updated_at),
            "username": row.username,
        }
        for row in result.all()
    ]
