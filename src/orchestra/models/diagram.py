"""Diagram data models consumed by the visualization layer."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel


class DiagramNode(BaseModel):
    id: str
    label: str
    type: str = "agent"
    role: Optional[str] = None
    category: Optional[str] = None
    description: Optional[str] = None
    size: Optional[float] = None
    style: Optional[dict] = None


class DiagramEdge(BaseModel):
    id: str
    source: str
    target: str
    label: str = ""
    type: str = "sequential"
    style: Optional[dict] = None


class DiagramGroup(BaseModel):
    id: str
    label: str
    nodes: list[str] = []
    style: Optional[dict] = None


class DiagramData(BaseModel):
    nodes: list[DiagramNode] = []
    edges: list[DiagramEdge] = []
    layout: str = "dagre"
    groups: Optional[list[DiagramGroup]] = None
