"""Configuration — pydantic section models, TOML discovery, logging setup."""
