"""Table access for trucks, profiles and related rows."""
