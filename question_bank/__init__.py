"""
Offline question bank: static data plus the selector that serves it
when generation providers are unreachable.
"""
