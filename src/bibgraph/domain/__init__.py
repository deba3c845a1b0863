"""Domain layer — graph types, identity keys, and pure view rules.

This layer depends only on stdlib and pydantic.
It must never import from services, infrastructure, commands, or config.
"""
