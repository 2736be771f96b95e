"""HTTP surface (Flask blueprint)."""
