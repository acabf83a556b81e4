"""Configuration, persistence, security and ownership checks."""
