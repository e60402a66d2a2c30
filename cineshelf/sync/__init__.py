"""
Backup and restore against the snapshot server.

Modules:
    - snapshot: wire-format value types and payload validation
    - repair: fixes applied to fetched snapshots
    - client: httpx client for the server routes
    - coordinator: SyncCoordinator (backup, restore, undo)
"""
