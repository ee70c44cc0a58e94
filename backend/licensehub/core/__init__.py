# licensehub/core/__init__.py
"""
Core application modules.
Contains essential infrastructure components:
- bootstrap: Application initialization and admin credential creation
- clock: Timezone-aware UTC "now" used by the services
- db: Database configuration and connection management
- errors: Error kinds reported by the licensing core
- locks: Per-resource locks for read-modify-write cycles
- security: Authentication, authorization, and password hashing
- store: Record store abstraction (memory and Tortoise ORM)
"""
