"""Models for django-washplan."""

from django.core.serializers.json import DjangoJSONEncoder
from django.db import models
from django.utils import timezone


class WizardDraftQuerySet(models.QuerySet):
    def expired(self, now=None):
        return self.filter(expires_at__lte=now or timezone.now())


class WizardDraft(models.Model):
    """
    An in-progress subscription saved between wizard sessions.

    Drafts are stored under a fixed key and expire on a rolling window:
    every save pushes expires_at forward. Expired rows are deleted on read
    and by the cleanup_wizard_drafts command.

    Usage:
        WizardDraft.objects.update_or_create(
            key='subscription_wizard_draft',
            defaults={'payload': draft.to_dict(), 'expires_at': expires_at},
        )
    """

    key = models.CharField(
        max_length=255,
        unique=True,
        help_text="Storage slot, e.g. 'subscription_wizard_draft'"
    )
    payload = models.JSONField(
        encoder=DjangoJSONEncoder,
        help_text="Serialized SubscriptionDraft"
    )
    expires_at = models.DateTimeField(
        db_index=True,
        help_text="When this draft stops being resumable"
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = WizardDraftQuerySet.as_manager()

    class Meta:
        verbose_name = "wizard draft"
        verbose_name_plural = "wizard drafts"

    def __str__(self):
        return f"{self.key} (expires {self.expires_at:%Y-%m-%d %H:%M})"

    def is_expired(self, now=None) -> bool:
        return self.expires_at <= (now or timezone.now())
