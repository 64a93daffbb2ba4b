"""Client application: state store and bootstrap."""
