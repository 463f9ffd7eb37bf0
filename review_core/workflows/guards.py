# review_core/workflows/guards.py

from django.core.exceptions import PermissionDenied
from django.db import models


class WorkflowWriteGuardMixin(models.Model):
    """
    Blocks save() of a stored row when any of WORKFLOW_FIELDS differs from
    the database value. Those columns are written only by the task store,
    which uses a queryset update and never calls save().

    Pass _workflow_bypass=True to save() (or set it on the instance) for
    fixtures and data repair.
    """

    WORKFLOW_FIELDS = ("status",)

    class Meta:
        abstract = True

    def _changed_workflow_fields(self):
        fields = [self._meta.get_field(name).attname for name in self.WORKFLOW_FIELDS]
        stored = self.__class__.objects.filter(pk=self.pk).values(*fields).first()
        if stored is None:
            return []
        return [name for name in fields if stored[name] != getattr(self, name)]

    def save(self, *args, **kwargs):
        bypass = kwargs.pop("_workflow_bypass", False) or getattr(self, "_workflow_bypass", False)

        if not bypass and self.pk is not None and self.WORKFLOW_FIELDS:
            changed = self._changed_workflow_fields()
            if changed:
                raise PermissionDenied(
                    f"Direct modification of {', '.join(changed)} is forbidden; "
                    "use the review workflow."
                )

        return super().save(*args, **kwargs)
