"""Collaboration subpackage - session relay over a pub/sub transport."""
from .relay import CollaborationRelay, CollaborationSession, CollaborationUpdate, Participant
from .transport import InMemoryBroker, InMemoryTransport, ReconnectPolicy, TransportError

__all__ = [
    'CollaborationRelay', 'CollaborationSession', 'CollaborationUpdate', 'Participant',
    'InMemoryBroker', 'InMemoryTransport', 'ReconnectPolicy', 'TransportError',
]
