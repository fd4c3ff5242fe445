"""Utility functions and tools used across the muskim package.

**Core Utilities:**
- `factory`: Generic name -> class instantiation from configuration blocks
- `logger`: Logging configuration, shared `muskim` logger
- `enums`: Enumerated track types and propagation surfaces
- `globals`: Global constants (sentinels, geometry defaults, unit factors)

**Decorators:**
- `docstring`: Docstring inheritance utilities for class hierarchies

**Performance:**
- `stopwatch`: Wall/CPU timing of the processing stages
"""
