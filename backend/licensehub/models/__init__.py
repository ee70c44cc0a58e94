"""
Database models module initialization.

The licensing core persists plain JSON collections through an abstract record
store (see licensehub.core.store); the only table it needs is Record.

Models exported:
- Record: One persisted collection (JSON value + version counter)
"""
from .record import Record
