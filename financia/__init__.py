"""
Financ.ia - Source Package

A personal finance tracker: transactions, investments and taxes for a
single signed-in user, a dashboard of derived metrics, and a conversational
assistant that records entries from plain-language statements.

DESIGN PRINCIPLES:
1. Analytics are pure functions of the stored records
2. One explicit store object per session, no ambient state
3. Assistant output is validated before it touches the store
4. Failures degrade to safe defaults, never to a crashed session
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Financ.ia Team"
