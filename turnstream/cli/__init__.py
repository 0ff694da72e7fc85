"""Command line tools for inspecting assistant streams."""
