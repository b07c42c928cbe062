"""
VM Translator (vmtrans) - Translates stack VM code to Hack assembly.

This package lowers the stack-based VM instruction language produced by the
Jack compiler into symbolic assembly for the 16-bit Hack computer, including
the function call protocol and the multi-file bootstrap sequence.
"""

__version__ = "0.1.0"
__author__ = "VM Translator Project"
