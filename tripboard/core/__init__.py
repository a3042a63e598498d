"""Configuration, logging, database and dependency wiring."""
