"""Discord bindings for the relay engine."""
