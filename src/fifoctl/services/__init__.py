"""Service layer: registries, dispatch, and the pipe reader loop."""
