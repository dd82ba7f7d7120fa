"""Configuration: TOML sections, settings resolution, logging setup."""
