# Document file cleanup and availability cache invalidation.
import logging

from django.db.models.signals import post_delete, post_save, pre_save
from django.dispatch import receiver

from . import availability
from .models import Booking, VerificationDocument

logger = logging.getLogger(__name__)


def _safe_delete_file(file_field):
    """Delete underlying file from storage if it exists."""
    if not file_field:
        return
    try:
        storage = file_field.storage
        name = file_field.name
        if name and storage.exists(name):
            storage.delete(name)
    except OSError:
        # row is already gone; leave the orphan file
        logger.warning("Could not delete stored file %s", file_field.name, exc_info=True)


@receiver(post_delete, sender=VerificationDocument)
def document_post_delete(sender, instance, **kwargs):
    """Remove the scan from storage when its row is deleted."""
    _safe_delete_file(instance.file)


@receiver(pre_save, sender=VerificationDocument)
def document_pre_save_replace(sender, instance, **kwargs):
    """If the scan changes on update, delete the previous file."""
    if not instance.pk:
        return
    try:
        old = VerificationDocument.objects.get(pk=instance.pk)
    except VerificationDocument.DoesNotExist:
        return
    if old.file and instance.file and old.file.name != instance.file.name:
        _safe_delete_file(old.file)


@receiver(post_save, sender=Booking)
@receiver(post_delete, sender=Booking)
def booking_changed(sender, instance, **kwargs):
    availability.invalidate(instance.bike_id)
