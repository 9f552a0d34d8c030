"""
Core Layer - Interactive State of the Agent Network Visualization

Modules:
- layout_store: Key-value stores and layout persistence
- scheduler: Injectable clock and timers (manual and asyncio)
- drag_controller: Pointer state machine, click vs drag, drag commit
- flow_animator: Simulated data flows and status randomization
- activity_feed: External activity log interface
- view_model: Session composition and renderable snapshots
"""

from .layout_store import (
    KeyValueStore,
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    LayoutPersistence,
    create_layout_persistence,
)
from .scheduler import (
    Scheduler,
    TimerHandle,
    ManualScheduler,
    AsyncioScheduler,
)
from .drag_controller import (
    DragController,
    DragSession,
    DragState,
    PointerOutcome,
)
from .flow_animator import FlowAnimator
from .activity_feed import (
    ActivityFeed,
    StaticActivityFeed,
)
from .view_model import (
    AgentNetworkSession,
    NetworkSnapshot,
    create_session,
)

__all__ = [
    # Persistence
    'KeyValueStore',
    'InMemoryKeyValueStore',
    'JsonFileKeyValueStore',
    'LayoutPersistence',
    'create_layout_persistence',

    # Scheduling
    'Scheduler',
    'TimerHandle',
    'ManualScheduler',
    'AsyncioScheduler',

    # Interaction
    'DragController',
    'DragSession',
    'DragState',
    'PointerOutcome',

    # Animation and activity
    'FlowAnimator',
    'ActivityFeed',
    'StaticActivityFeed',

    # Session
    'AgentNetworkSession',
    'NetworkSnapshot',
    'create_session',
]
