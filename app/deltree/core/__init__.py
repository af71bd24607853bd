"""Core configuration: XDG paths and retry settings."""
