"""HTTP API: routes and dependency wiring."""
