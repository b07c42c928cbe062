#!/usr/bin/env python3
"""
VM Translator entry point.

Usage: python vmtrans.py Prog.vm|ProgDir [-o output.asm] [--entry Sys.init]
"""

from vmtrans.compiler import main

if __name__ == '__main__':
    main()
