"""Flow-based asynchronous execution of tasks arranged as a dependency graph, with a YAML task parser."""

__version__ = "0.5.0"