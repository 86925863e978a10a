"""Network boot director serving iPXE loaders over TFTP and boot scripts over HTTP."""

__version__ = "0.1.0"