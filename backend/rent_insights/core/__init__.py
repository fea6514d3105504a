"""Configuration, logging, errors, database and cache plumbing."""
