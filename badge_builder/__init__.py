"""
Shared Badge Builder backend library code.

This package is intended to hold code that is reused by the FastAPI app in `api/`.

App entrypoints (FastAPI routers) should live outside this package and import from
`badge_builder` rather than the other way around.
"""
