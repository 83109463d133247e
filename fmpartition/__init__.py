"""Two-way netlist partitioning with Fiduccia-Mattheyses refinement and genetic seeding."""

__version__ = "0.1.0"