"""Organization-scoped application services."""
