"""bibgraph — bibliographic relationship graphs for a reference library."""

__version__ = "0.3.0"
