"""
UI Module - Discord UI Components

Modals shared by admin commands.

Available components:
- AdminConfirmationModal: typed-word confirmation with an optional reason
"""

from .admin_confirmation_modal import AdminConfirmationModal

__all__ = ['AdminConfirmationModal']
