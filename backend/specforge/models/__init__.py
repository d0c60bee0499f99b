from specforge.models.profile import Plan, UserProfile
from specforge.models.saved_spec import SavedSpec


__all__ = [
    "Plan",
    "UserProfile",
    "SavedSpec",
]
