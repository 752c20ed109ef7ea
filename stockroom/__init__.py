"""
stockroom: point-of-sale and inventory back end.

Business services (login, goods arrival, inventory) sit on a generic
persistence facade and a process-wide singleton registry.
"""

__version__ = "1.0.0"
