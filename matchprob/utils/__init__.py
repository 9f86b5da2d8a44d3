"""Utility functions and helpers for matchprob.

This module provides common utilities including type definitions
and decorators used across the matchprob package.

Submodules:
    - typing: Type definitions and aliases
    - decorators: DataFrame validation decorators

"""
