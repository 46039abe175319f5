import uuid

from django.conf import settings
from django.db import models, transaction
from django.utils import timezone

from ..verification_flow import (
    Step, CustomerType, DocumentKind, TransitionError,
    next_step, previous_step, expect_step, missing_documents, required_documents, age_on,
)


class Verification(models.Model):
    """One pass through the rider verification steps."""
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='verifications')
    step = models.CharField(max_length=20, choices=Step.choices, default=Step.CUSTOMER_TYPE)
    customer_type = models.CharField(max_length=20, choices=CustomerType.choices, blank=True, default='')
    date_of_birth = models.DateField(null=True, blank=True)
    token = models.UUIDField(null=True, blank=True, unique=True, editable=False)
    completed_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f"Verification {self.pk} for {self.user} [{self.step}]"

    @property
    def is_complete(self):
        return self.step == Step.COMPLETE

    @property
    def is_consumed(self):
        return getattr(self, 'booking', None) is not None

    def _ensure_open(self):
        if self.is_consumed:
            raise TransitionError("Verification was already used for a booking.", self.step)

    # -- forward transitions -------------------------------------------------

    @transaction.atomic
    def submit_customer_type(self, customer_type):
        self._ensure_open()
        expect_step(self.step, Step.CUSTOMER_TYPE)
        keep = required_documents(customer_type)
        self.documents.exclude(kind__in=keep).delete()
        self.customer_type = customer_type
        self.step = next_step(self.step)
        self.save(update_fields=['customer_type', 'step', 'updated_at'])

    @transaction.atomic
    def submit_documents(self, files):
        """`files` maps document kind -> uploaded file; already validated."""
        self._ensure_open()
        expect_step(self.step, Step.DOCUMENTS)
        for kind, upload in files.items():
            self.documents.filter(kind=kind).delete()
            VerificationDocument.objects.create(verification=self, kind=kind, file=upload)

        missing = missing_documents(self.customer_type, self.documents.values_list('kind', flat=True))
        if missing:
            return missing
        self.step = next_step(self.step)
        self.save(update_fields=['step', 'updated_at'])
        return []

    def submit_date_of_birth(self, date_of_birth, today=None):
        """Finish the sequence and issue the booking token; returns the rider's age."""
        self._ensure_open()
        expect_step(self.step, Step.AGE_VERIFICATION)
        today = today or timezone.localdate()
        age = age_on(date_of_birth, today)
        minimum = getattr(settings, 'MINIMUM_RENTER_AGE', 18)
        if age < minimum:
            raise TransitionError(
                f"You must be at least {minimum} years old to rent a bike.", self.step
            )
        self.date_of_birth = date_of_birth
        self.step = next_step(self.step)
        self.token = uuid.uuid4()
        self.completed_at = timezone.now()
        self.save(update_fields=['date_of_birth', 'step', 'token', 'completed_at', 'updated_at'])
        return age

    # -- backward transitions ------------------------------------------------

    def go_back(self):
        self._ensure_open()
        self.step = previous_step(self.step)
        self.save(update_fields=['step', 'updated_at'])

    @transaction.atomic
    def reset(self):
        self._ensure_open()
        self.documents.all().delete()
        self.step = Step.CUSTOMER_TYPE
        self.customer_type = ''
        self.date_of_birth = None
        self.token = None
        self.completed_at = None
        self.save(update_fields=[
            'step', 'customer_type', 'date_of_birth', 'token', 'completed_at', 'updated_at',
        ])


class VerificationDocument(models.Model):
    verification = models.ForeignKey(Verification, on_delete=models.CASCADE, related_name='documents')
    kind = models.CharField(max_length=20, choices=DocumentKind.choices)
    file = models.ImageField(upload_to='verifications/%Y/%m/')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['kind']
        constraints = [
            models.UniqueConstraint(fields=['verification', 'kind'], name='verification_doc_kind_uniq'),
        ]

    def __str__(self):
        return f"{self.get_kind_display()} for verification {self.verification_id}"
