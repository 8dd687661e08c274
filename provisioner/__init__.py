"""Solution Provisioner — on-demand install of catalogued solution services."""

__version__ = "0.1.0"
