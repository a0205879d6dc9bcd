"""
Kernel Layer

- Data models (users, resources, comments, ratings, audit log)
- Identity Core (accounts, roles, tokens, password reset)
- Permission Core (pure resource access policy)
- Slug allocation for public resource identifiers
- Append-only event log

Invariants:
- Every resource mutation is gated by permissions.authorize()
- Slugs are unique; the database index is the final arbiter
- Moderation actions are written to the event log in the same transaction
"""
