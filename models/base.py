from sqlalchemy.orm import declarative_base
import enum

Base = declarative_base()


# ============================================================================
# ENUMS
# ============================================================================

class ReconcileAction(str, enum.Enum):
    """Outcome of reconciling one item against the store"""
    INSERTED = "inserted"
    UPDATED = "updated"


class RunState(str, enum.Enum):
    """Feed sync run state machine"""
    LOADING = "loading"
    FETCHING = "fetching"
    DRAINING = "draining"
    DONE = "done"
