"""master-coder - plan coding tasks into teams of specialized Claude workers and run them."""

from .master import MasterCoder

__version__ = "0.1.0"

__all__ = ["MasterCoder", "__version__"]
