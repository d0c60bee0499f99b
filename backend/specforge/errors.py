"""
Error Taxonomy
==============

Every failure that can reach a user is one of these exceptions. They are
raised deep in the services and converted to a JSON body (or an SSE error
event) at the HTTP boundary, so raw backend exceptions never leak to the
client.

    SpecForgeError
    ├── ConfigurationError      AI credential absent
    ├── AdmissionDenied         refused before any network call
    │   ├── NotAuthenticated
    │   ├── QuotaExhausted
    │   ├── NoModulesSelected
    │   ├── UnknownModules
    │   ├── IdeaLengthError
    │   └── PlanRequired        feature reserved for paid plans
    ├── AIBackendError          transport failure / empty response
    ├── StorePermissionError    access denied by the document store
    ├── StoreError              any other document store failure
    ├── SpecNotFound
    ├── SectionNotFound
    └── SectionPatchError       splice target no longer present verbatim
"""

from __future__ import annotations

from typing import Any


class SpecForgeError(Exception):

    status_code: int = 500
    kind: str = "internal_error"
    default_message = "An unexpected error occurred. Please try again."

    def __init__(self, user_message: str | None = None, **extra: Any) -> None:
        self.user_message = user_message or self.default_message
        self.extra = extra
        super().__init__(self.user_message)

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.kind, "detail": self.user_message, **self.extra}


class ConfigurationError(SpecForgeError):
    status_code = 503
    kind = "configuration_error"
    default_message = "The AI service is not configured correctly. Please try again later."


class AdmissionDenied(SpecForgeError):
    status_code = 400
    kind = "admission_denied"
    default_message = "This request cannot be processed."


class NotAuthenticated(AdmissionDenied):
    status_code = 401
    kind = "not_authenticated"
    default_message = "Please log in to generate a specification."


class QuotaExhausted(AdmissionDenied):
    status_code = 402
    kind = "quota_exhausted"
    default_message = (
        "You have used all your free generations for this month. "
        "Please visit the Billing page to see upcoming plans for more."
    )

    def __init__(self, user_message: str | None = None, **extra: Any) -> None:
        extra.setdefault("upgrade_path", "/billing")
        super().__init__(user_message, **extra)


class NoModulesSelected(AdmissionDenied):
    status_code = 422
    kind = "no_modules_selected"
    default_message = "Please select at least one documentation module to generate."


class UnknownModules(AdmissionDenied):
    status_code = 422
    kind = "unknown_modules"
    default_message = "One or more selected documentation modules do not exist."


class IdeaLengthError(AdmissionDenied):
    status_code = 422
    kind = "idea_length"
    default_message = "The idea text is outside the allowed length."


class PlanRequired(AdmissionDenied):
    status_code = 403
    kind = "plan_required"
    default_message = "This feature is available on paid plans. Please visit the Billing page to upgrade."

    def __init__(self, user_message: str | None = None, **extra: Any) -> None:
        extra.setdefault("upgrade_path", "/billing")
        super().__init__(user_message, **extra)


class AIBackendError(SpecForgeError):
    status_code = 502
    kind = "ai_backend_error"
    default_message = "An error occurred while communicating with the AI service. Please try again."


class StorePermissionError(SpecForgeError):
    status_code = 403
    kind = "store_permission_denied"
    default_message = (
        "The document store refused this operation. This is a configuration issue "
        "with the storage account, not a problem with your data: grant the service "
        "role read/write access to the user_profiles and saved_specs tables, then retry."
    )


class StoreError(SpecForgeError):
    status_code = 503
    kind = "store_error"
    default_message = "The document store is unavailable."


class SpecNotFound(SpecForgeError):
    status_code = 404
    kind = "spec_not_found"
    default_message = "Specification not found."


class SectionNotFound(SpecForgeError):
    status_code = 404
    kind = "section_not_found"
    default_message = "Section not found in the current document."


class SectionPatchError(SpecForgeError):
    status_code = 409
    kind = "section_patch_failed"
    default_message = (
        "The section could not be updated because the document changed since it "
        "was loaded. Reload the document and try again."
    )
