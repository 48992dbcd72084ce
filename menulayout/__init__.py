"""Grid layout engine for the visual restaurant-menu designer.

This package exposes the public API surface via:

- ``menulayout.engine.layout_engine.LayoutEngine``: one menu's designer session.
- ``menulayout.engine.solver.PlacementSolver``: collision-free placement queries.
- ``menulayout.io.persistence.PersistenceAdapter``: debounced layout saving.
"""

from .engine.grid import GridConfig, GridModel
from .engine.layout_engine import LayoutEngine, PlacementResult, RenderSection
from .engine.solver import PlacementSolver
from .io.persistence import PersistenceAdapter

__all__ = [
    "GridConfig",
    "GridModel",
    "LayoutEngine",
    "PlacementResult",
    "PlacementSolver",
    "PersistenceAdapter",
    "RenderSection",
]

__version__ = "0.1.0"
