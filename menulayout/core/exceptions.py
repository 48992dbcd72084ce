"""Custom exception hierarchy for the layout engine."""


class LayoutError(Exception):
    """Base exception for layout engine failures."""


class BoundsViolation(LayoutError):
    """Raised when a footprint cannot fit inside the grid."""


class PlacementExhausted(LayoutError):
    """Raised when no free slot exists for a footprint."""


class OccupancyConflict(LayoutError):
    """Raised when two section footprints claim the same cell."""


class StaleReference(LayoutError):
    """Raised when a structural section points at a category that no longer exists."""


class DragStateError(LayoutError):
    """Raised when a drag event references an unknown section."""


class MalformedConfig(LayoutError):
    """Raised when a stored layout document cannot be decoded at all."""


class PersistenceFailure(LayoutError):
    """Raised when the layout store cannot be read or written."""


class VersionConflict(PersistenceFailure):
    """Raised when a save is based on a stale layout version."""


class ValidationError(LayoutError):
    """Raised when a layout breaks an integrity invariant."""
