"""API module for facetmetrics.

API layer:
- Validates inputs, forwards state changes to the state holders
- Returns table payloads for the UI
- Forbidden: scorer calls, direct store mutation
"""
