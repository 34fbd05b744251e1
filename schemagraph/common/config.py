#!/usr/bin/env python3
"""
Layout tuning constants and logging setup.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

DIRECTIONS = ("TB", "LR")


@dataclass
class ForceLayoutConfig:
    """Physics constants for the force-directed layout."""

    repulsion: float = 10000.0  # numerator of the inverse-square repulsion
    rest_length: float = 250.0  # ideal edge length
    spring: float = 0.012
    centering: float = 0.001
    damping: float = 0.82
    max_iterations: int = 150
    min_distance: float = 1.0

    # Initial placement
    ring_size: int = 6
    ring_radius: float = 280.0

    def validate(self) -> None:
        if self.max_iterations <= 0:
            raise ValueError("max_iterations must be positive")
        if not 0.0 < self.damping < 1.0:
            raise ValueError("damping must be in (0, 1)")
        if self.ring_size <= 0:
            raise ValueError("ring_size must be positive")


@dataclass
class LayeredLayoutConfig:
    """Sizes and spacing for the layered (rank/position) layout."""

    direction: str = "TB"
    node_width: float = 280.0
    default_node_height: float = 200.0  # tables without columns
    header_height: float = 60.0
    row_height: float = 28.0
    rank_sep: float = 80.0
    node_sep: float = 60.0
    ordering_sweeps: int = 4

    def node_height(self, column_count: int) -> float:
        if column_count <= 0:
            return self.default_node_height
        return self.header_height + column_count * self.row_height

    def validate(self) -> None:
        if self.direction not in DIRECTIONS:
            raise ValueError(f"direction must be one of {DIRECTIONS}, got {self.direction!r}")
        if self.ordering_sweeps < 0:
            raise ValueError("ordering_sweeps must be >= 0")


@dataclass
class TreeLayoutConfig:
    """Node slot and sibling separation for the hierarchy tree."""

    node_width: float = 220.0
    node_height: float = 52.0
    h_gap: float = 40.0
    v_gap: float = 90.0
    sibling_separation: float = 1.1
    cousin_separation: float = 1.5


@dataclass
class FlowLayoutConfig:
    """Grid spacing for the level-by-level flow layout."""

    node_width: float = 220.0
    node_height: float = 60.0
    gap_x: float = 80.0
    gap_y: float = 120.0


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging for command-line use."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
    )
