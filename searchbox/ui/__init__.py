"""View-facing bindings: connectors, providers and the search box."""
