"""dialoguegraph: branching dialogue graphs, validation and engine export."""

__version__ = "0.1.0"
