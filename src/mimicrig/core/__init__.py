"""Core math, transforms, scene graph and config loading."""
