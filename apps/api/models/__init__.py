"""Models package."""

from .content import Content
from .content_view import ContentView
from .graph import Graph
from .graph_node import GraphNode
from .graph_edge import GraphEdge
