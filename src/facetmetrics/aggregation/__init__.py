"""Aggregation module for the metrics store.

- store: keyed MetricsRow store (upsert / evict / read-all)
- grouping: facet partitioning of example sets
- projection: flat table view of the store
- Forbidden: scorer calls, event handling
"""
