"""
irdump: debug dumps of arena-allocated function IR.
"""

__version__ = "0.1.0"

from .ir import display, display_module, load_module
