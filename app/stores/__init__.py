"""Backing stores behind the API.

- documents: MongoDB comments and personal game lists
- graph: Neo4j game/user nodes and co-rating edges
- context: the StoreContext that owns every client and its lifecycle

The relational store lives in app.database and the Redis cache in
app.utils.cache. No business logic lives in stores; that belongs in services.
"""
