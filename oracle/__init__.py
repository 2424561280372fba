"""
Oracle: strategic discovery interviews.

Two interview paths share this package: the step-based interview engine over
static archetypes, and the adaptive, signal-driven interview workflow.
"""

__version__ = "0.1.0"
