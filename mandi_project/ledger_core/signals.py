from django.core.exceptions import ValidationError
from django.db.models.signals import pre_delete
from django.dispatch import receiver

from .models import Payment, SalesPayment

"""Block deletion of recorded payments; reversal is a separate flow."""


# pre_delete signal auto-fires just before Django deletes a model instance
@receiver(pre_delete, sender=Payment)
@receiver(pre_delete, sender=SalesPayment)
def prevent_delete_recorded_payment(sender, instance, **kwargs):
    raise ValidationError("Recorded payments cannot be deleted.")
