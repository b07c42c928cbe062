"""Hack assembly generation from VM commands."""

from .codegen import CodeGenerator, BOOTSTRAP_CONTEXT

__all__ = ['CodeGenerator', 'BOOTSTRAP_CONTEXT']
