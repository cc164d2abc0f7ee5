"""
ZEROBALANCE - Conversational Command Resolver

Turns one free-text chat message into exactly one well-formed action
for a personal budgeting app.

DESIGN PRINCIPLES:
1. The generative model suggests; deterministic code decides
2. Never return a half-formed action
3. Ask the user instead of guessing
4. Never raise to the caller; report failures as actions
5. Every step is auditable
"""

__version__ = "1.0.0"
__author__ = "ZEROBALANCE Team"
