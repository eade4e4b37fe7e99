"""Configuration and logging shared across productrules."""
