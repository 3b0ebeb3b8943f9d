"""Tool registry and the catalog tools registered in it."""
