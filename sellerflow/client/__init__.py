"""HTTP collaborator and wire adapters for the marketplace backend."""
