"""Admin JSON API consumed by the dashboard UI."""
