"""
Application Layer

Orchestrates domain objects and infrastructure adapters:
- interfaces/: ports implemented by the infrastructure layer
- services/: the playback controller and its per-guild mailbox
"""
