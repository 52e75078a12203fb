"""
API server package: HTTP/REST interface for top-down analyses.

Authenticates the caller, validates request bodies and delegates to the
repositories and the analysis service.
"""
