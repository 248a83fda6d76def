"""Core application infrastructure: configuration, logging, factory, plugins."""
