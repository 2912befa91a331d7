"""Application layer: ports and the services built on them."""
