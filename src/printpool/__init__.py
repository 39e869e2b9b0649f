"""printpool: network receipt and label printing for point-of-sale clients."""

__version__ = "0.1.0"
