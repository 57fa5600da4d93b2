"""Application layer: services orchestrating core and infrastructure."""
