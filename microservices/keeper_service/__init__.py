"""
Keeper Service - Personal credential vault

Authenticates users and stores login/password pairs, bank cards, text and
binary items, with client-side encryption of the sensitive fields.
"""

__version__ = "1.0.0"
