"""State persistence for the partner program simulator."""

from .storage import (
    KeyValueStore,
    InMemoryStore,
    JsonFileStore
)
from .state_document import (
    DOCUMENT_VERSION,
    StateImportError,
    SimulatorState,
    SessionStore,
    export_state,
    dumps_state,
    import_state,
    save_state_file,
    load_state_file
)

__all__ = [
    'KeyValueStore',
    'InMemoryStore',
    'JsonFileStore',
    'DOCUMENT_VERSION',
    'StateImportError',
    'SimulatorState',
    'SessionStore',
    'export_state',
    'dumps_state',
    'import_state',
    'save_state_file',
    'load_state_file'
]
