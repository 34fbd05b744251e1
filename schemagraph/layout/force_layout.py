#!/usr/bin/env python3
"""
Force-directed layout for the node-link view.

State machine: INITIALIZING -> SIMULATING -> SETTLED.

Initial positions are deterministic: tables sorted by descending connection
degree (FK endpoints on the table, counting FKs whose other end was
filtered out), the first at the origin, the rest on concentric rings
starting at the top.
Each step computes every force from the previous step's positions, then
integrates:
- Repulsion: inverse-square between every pair
- Attraction: spring toward a rest length along every FK edge
- Centering: pull toward the origin proportional to distance
- Damping: velocities scaled down before they move the node
The simulation settles after a fixed iteration budget.
"""

from __future__ import annotations

import asyncio
import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, Iterator, List, Optional, Tuple

import numpy as np

from schemagraph.analysis.graph_builder import DependencyGraph
from schemagraph.common.config import ForceLayoutConfig

logger = logging.getLogger(__name__)

Positions = Dict[str, Tuple[float, float]]


class SimulationState(Enum):
    INITIALIZING = "initializing"
    SIMULATING = "simulating"
    SETTLED = "settled"


@dataclass(frozen=True)
class ForceLink:
    source: str
    target: str
    label: str


@dataclass
class ForceLayout:
    positions: Positions = field(default_factory=dict)
    links: List[ForceLink] = field(default_factory=list)
    degrees: Dict[str, int] = field(default_factory=dict)
    iterations: int = 0


def degree_order(graph: DependencyGraph) -> List[str]:
    """Table names by descending connection degree; ties keep table order."""
    return sorted(graph.table_names, key=lambda name: -graph.connection_degree[name])


def initial_positions(order: List[str], config: ForceLayoutConfig) -> np.ndarray:
    """
    Ring placement: index 0 at the origin, then ring_size nodes per ring at
    radius ring * ring_radius, evenly spaced, starting at -90 degrees.
    """
    coords = np.zeros((len(order), 2), dtype=np.float64)
    for i in range(1, len(order)):
        ring = math.ceil(i / config.ring_size)
        slot = (i - 1) % config.ring_size
        angle = slot / config.ring_size * 2 * math.pi - math.pi / 2
        radius = ring * config.ring_radius
        coords[i] = (math.cos(angle) * radius, math.sin(angle) * radius)
    return coords


class ForceSimulation:
    """
    One simulation run over a fixed node/edge set.

    Owned by the caller and discarded when the input changes; never reused
    across unrelated graphs.
    """

    def __init__(self, graph: DependencyGraph, config: Optional[ForceLayoutConfig] = None):
        self.config = config or ForceLayoutConfig()
        self.config.validate()
        self.state = SimulationState.INITIALIZING
        self.iteration = 0
        self.cancelled = False

        self.order = degree_order(graph)
        self.degrees = {name: graph.connection_degree[name] for name in self.order}
        index = {name: i for i, name in enumerate(self.order)}
        edges = graph.edges(include_self=False)
        self.links = [ForceLink(fk.source_table, fk.target_table, fk.label) for fk in edges]
        self._src = np.array([index[fk.source_table] for fk in edges], dtype=np.intp)
        self._dst = np.array([index[fk.target_table] for fk in edges], dtype=np.intp)

        self.positions = initial_positions(self.order, self.config)
        self.velocities = np.zeros_like(self.positions)

        self.state = SimulationState.SIMULATING if self.order else SimulationState.SETTLED
        logger.debug("Force simulation: %d nodes, %d links", len(self.order), len(self.links))

    @property
    def settled(self) -> bool:
        return self.state is SimulationState.SETTLED

    def cancel(self) -> None:
        self.cancelled = True

    def _forces(self, pos: np.ndarray) -> np.ndarray:
        cfg = self.config
        acc = np.zeros_like(pos)

        # delta[i, j] = pos[j] - pos[i]
        delta = pos[np.newaxis, :, :] - pos[:, np.newaxis, :]
        dist = np.maximum(np.sqrt((delta ** 2).sum(axis=-1)), cfg.min_distance)
        magnitude = cfg.repulsion / (dist * dist)
        np.fill_diagonal(magnitude, 0.0)
        acc -= ((delta / dist[..., np.newaxis]) * magnitude[..., np.newaxis]).sum(axis=1)

        if len(self._src):
            d = pos[self._dst] - pos[self._src]
            link_dist = np.maximum(np.sqrt((d ** 2).sum(axis=-1)), cfg.min_distance)
            pull = (link_dist - cfg.rest_length) * cfg.spring
            f = d / link_dist[:, np.newaxis] * pull[:, np.newaxis]
            np.add.at(acc, self._src, f)
            np.add.at(acc, self._dst, -f)

        acc -= pos * cfg.centering
        return acc

    def step(self) -> bool:
        """
        Advance one iteration. Returns True while more steps remain.

        All forces are read from the positions published by the previous
        step; the new positions replace them only once the step is done.
        """
        if self.cancelled or self.state is not SimulationState.SIMULATING:
            return False

        velocities = (self.velocities + self._forces(self.positions)) * self.config.damping
        self.positions = self.positions + velocities
        self.velocities = velocities
        self.iteration += 1

        if self.iteration >= self.config.max_iterations:
            self.state = SimulationState.SETTLED
            logger.debug("Force simulation settled after %d iterations", self.iteration)
            return False
        return True

    def snapshot(self) -> Positions:
        return {
            name: (float(self.positions[i, 0]), float(self.positions[i, 1]))
            for i, name in enumerate(self.order)
        }

    def iter_steps(self) -> Iterator[Tuple[int, Positions]]:
        """Yield (iteration, positions) after each completed step."""
        while self.state is SimulationState.SIMULATING and not self.cancelled:
            self.step()
            if self.cancelled:
                return
            yield self.iteration, self.snapshot()

    def run(self, progress: Optional[Callable[[int], None]] = None) -> ForceLayout:
        """Run to the iteration budget and return the settled layout."""
        for iteration, _ in self.iter_steps():
            if progress is not None:
                progress(iteration)
        return self.result()

    def result(self) -> ForceLayout:
        return ForceLayout(
            positions=self.snapshot(),
            links=list(self.links),
            degrees=dict(self.degrees),
            iterations=self.iteration,
        )


def compute_force_layout(
    graph: DependencyGraph,
    config: Optional[ForceLayoutConfig] = None,
) -> ForceLayout:
    return ForceSimulation(graph, config).run()


class ForceLayoutRunner:
    """
    Runs simulations as a background asyncio task, one step per tick.

    restart() cancels the in-flight run and starts a fresh simulation; a
    step from a superseded run is never published.
    """

    def __init__(
        self,
        on_update: Callable[[int, Positions], None],
        on_settled: Optional[Callable[[ForceLayout], None]] = None,
        config: Optional[ForceLayoutConfig] = None,
        tick: float = 0.0,
    ):
        self.on_update = on_update
        self.on_settled = on_settled
        self.config = config
        self.tick = tick
        self.simulation: Optional[ForceSimulation] = None
        self._task: Optional[asyncio.Task] = None
        self._generation = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def restart(self, graph: DependencyGraph) -> asyncio.Task:
        """Must be called from within a running event loop."""
        self.cancel()
        self._generation += 1
        self.simulation = ForceSimulation(graph, self.config)
        self._task = asyncio.get_running_loop().create_task(
            self._run(self.simulation, self._generation)
        )
        return self._task

    def cancel(self) -> None:
        if self.simulation is not None:
            self.simulation.cancel()
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._generation += 1

    async def wait(self) -> Optional[ForceLayout]:
        """Wait for the current run; None if it was cancelled."""
        if self._task is None:
            return None
        try:
            return await self._task
        except asyncio.CancelledError:
            return None

    def _is_current(self, sim: ForceSimulation, generation: int) -> bool:
        return generation == self._generation and not sim.cancelled

    async def _run(self, sim: ForceSimulation, generation: int) -> Optional[ForceLayout]:
        while not sim.settled:
            sim.step()
            if not self._is_current(sim, generation):
                return None
            self.on_update(sim.iteration, sim.snapshot())
            await asyncio.sleep(self.tick)

        if not self._is_current(sim, generation):
            return None
        layout = sim.result()
        if self.on_settled is not None:
            self.on_settled(layout)
        return layout
