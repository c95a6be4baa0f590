"""
tasks — owner-scoped task CRUD.

Every query goes through ``database.ownership.OwnedScope`` so the owner
id is part of the SQL predicate.
"""
