"""
Rider verification as an explicit step sequence.

    customer_type -> documents -> age_verification -> complete

Forward moves happen only when a step's data is submitted; `back` steps one
stage towards the start (never out of `customer_type`, never out of the
terminal `complete`); `reset` returns to `customer_type` from anywhere.
"""
from django.db import models


class Step(models.TextChoices):
    CUSTOMER_TYPE = "customer_type", "Customer type"
    DOCUMENTS = "documents", "Documents"
    AGE_VERIFICATION = "age_verification", "Age verification"
    COMPLETE = "complete", "Complete"


class CustomerType(models.TextChoices):
    DOMESTIC = "domestic", "Domestic"
    INTERNATIONAL = "international", "International"


class DocumentKind(models.TextChoices):
    DRIVING_LICENSE = "driving_license", "Driving license"
    ID_PROOF = "id_proof", "Government ID proof"
    PASSPORT = "passport", "Passport"
    DRIVING_PERMIT = "driving_permit", "International driving permit"


REQUIRED_DOCUMENTS = {
    CustomerType.DOMESTIC: (DocumentKind.DRIVING_LICENSE, DocumentKind.ID_PROOF),
    CustomerType.INTERNATIONAL: (DocumentKind.PASSPORT, DocumentKind.DRIVING_PERMIT),
}

SEQUENCE = (Step.CUSTOMER_TYPE, Step.DOCUMENTS, Step.AGE_VERIFICATION, Step.COMPLETE)


class TransitionError(Exception):
    """Raised when an action is not allowed from the current step."""

    def __init__(self, message, step=None):
        super().__init__(message)
        self.step = step


def next_step(step):
    if step == Step.COMPLETE:
        raise TransitionError("Verification is already complete.", step)
    return SEQUENCE[SEQUENCE.index(step) + 1]


def previous_step(step):
    if step == Step.CUSTOMER_TYPE:
        raise TransitionError("Already at the first step.", step)
    if step == Step.COMPLETE:
        raise TransitionError("Verification is complete; reset to start over.", step)
    return SEQUENCE[SEQUENCE.index(step) - 1]


def expect_step(current, expected):
    if current != expected:
        raise TransitionError(
            f"Expected step '{expected}', verification is at '{current}'.", current
        )


def required_documents(customer_type):
    try:
        return REQUIRED_DOCUMENTS[CustomerType(customer_type)]
    except ValueError:
        raise TransitionError(f"Unknown customer type '{customer_type}'.")


def missing_documents(customer_type, provided_kinds):
    provided = set(provided_kinds)
    return [kind for kind in required_documents(customer_type) if kind not in provided]


def age_on(birth_date, today):
    """Completed years; the birthday has to be reached in `today`'s year."""
    years = today.year - birth_date.year
    if (today.month, today.day) < (birth_date.month, birth_date.day):
        years -= 1
    return years
