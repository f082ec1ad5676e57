"""Tool catalogue, registry and dispatcher."""
