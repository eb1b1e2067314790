"""
DispatchFlow - order fulfilment workflow tracking and vehicle dispatch.
"""

__version__ = "1.0.0"
