"""Persistence — append-only event log and collection state store."""

from mintgate.persistence.event_log import EventKind, EventLog, EventRecord
from mintgate.persistence.state_store import CollectionState, StateStore

__all__ = ["CollectionState", "EventKind", "EventLog", "EventRecord", "StateStore"]
