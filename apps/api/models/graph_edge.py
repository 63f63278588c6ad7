"""Knowledge graph edge model."""

from sqlalchemy import Column, ForeignKey, String
from sqlalchemy.orm import relationship

from database import Base


class GraphEdge(Base):
    """Directed relation between two topic nodes of the same graph."""

    __tablename__ = "graph_edges"

    graph_id = Column(String, ForeignKey("graphs.id", ondelete="CASCADE"), primary_key=True)
    id = Column(String, primary_key=True)
    from_node = Column(String, nullable=False)
    to_node = Column(String, nullable=False)
    type = Column(String, nullable=False, default="causal")  # causal, multiway, branchial
    label = Column(String, nullable=False, default="")

    graph = relationship("Graph", back_populates="edges")
