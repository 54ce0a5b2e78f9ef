"""
Fuzz Harness Assistant
======================
Generates fuzz test harnesses for Solidity contracts with Gemini and repairs
them until they pass a compile check.

Packages:
- harness_generator: conversation history, prompts and the Gemini client
- compile_ops: harness file storage and the compile validator
- pipeline: the generate → validate → repair loop and CLI
"""

__version__ = "0.1.0"
