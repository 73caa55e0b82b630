"""Configuration loading and logging setup for rdapfetch."""
