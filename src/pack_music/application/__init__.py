"""
Application Layer

Orchestrates domain objects and infrastructure ports.

Structure:
- interfaces/: Port interfaces for infrastructure adapters
- services/: Prefetch cache, per-guild subscription and the registry
"""
