"""Output layer: Rich rendering and JSON serialization for the CLI."""
