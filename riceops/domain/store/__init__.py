"""
Entity stores - in-memory collections with refresh-after-write mutations.
"""

from riceops.domain.store.entity_store import EntityStore, InwardSlipPassStore, TransporterStore

__all__ = ["EntityStore", "TransporterStore", "InwardSlipPassStore"]
