"""Light-flavour tracking x PID efficiency histograms from MC events."""

__version__ = "0.1.0"
