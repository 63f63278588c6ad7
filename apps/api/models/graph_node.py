"""Knowledge graph node model."""

from sqlalchemy import Column, Float, ForeignKey, String, Text
from sqlalchemy.orm import relationship

from database import Base


class GraphNode(Base):
    """Topic node; ids are chosen by the client and unique within a graph."""

    __tablename__ = "graph_nodes"

    graph_id = Column(String, ForeignKey("graphs.id", ondelete="CASCADE"), primary_key=True)
    id = Column(String, primary_key=True)
    label = Column(String, nullable=True)
    description = Column(Text, nullable=False, default="")
    category = Column(String, nullable=True)  # Core, Tools, Patterns, Testing, Integration
    x = Column(Float, nullable=False, default=0)
    y = Column(Float, nullable=False, default=0)
    z = Column(Float, nullable=False, default=0)

    graph = relationship("Graph", back_populates="nodes")
