"""Cross-cutting HTTP hardening."""
