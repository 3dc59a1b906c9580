"""PRISM character/video generation gateway."""
