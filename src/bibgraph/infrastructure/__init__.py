"""Infrastructure layer — relational source, graph stores, library container.

This layer depends on stdlib, the domain layer, and third-party libs
(SQLAlchemy, NetworkX). It must never import from services, commands,
or output.
"""
