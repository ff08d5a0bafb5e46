"""Core — registry models, persistence, configuration and use cases."""
