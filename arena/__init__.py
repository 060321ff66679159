"""Trading Arena - AI trader competition engine"""

__version__ = "0.1.0"
