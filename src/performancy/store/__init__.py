"""Pipeline state -- the PipelineStore container and its local persistence."""

from src.performancy.store.persistence import PersistedState, StateFile
from src.performancy.store.pipeline import PipelineStore

__all__ = ["PipelineStore", "PersistedState", "StateFile"]
