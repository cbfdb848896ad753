"""
Fasten - evolutionary tuning of annotated constants.

Treats numeric literals marked ``/* <KIND> FASTENABLE */`` as genes, then
builds and benchmarks mutated variants of the source tree to breed a faster
configuration.
"""

__version__ = "0.1.0"
