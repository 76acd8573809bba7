# clinical_core/workflows/guards.py

from django.core.exceptions import PermissionDenied
from django.db import models


class WorkflowWriteGuardMixin(models.Model):
    """
    Prevent direct modification of workflow-controlled fields outside the lifecycle service.

    Models inheriting this mixin must transition via the lifecycle service / record store.
    Direct .save() changes to WORKFLOW_FIELD on an existing row are blocked.

    Escape hatch:
      - pass _workflow_bypass=True to save(), OR
      - set instance._workflow_bypass = True
    Use sparingly (tests, data fixes, admin repair scripts).
    """

    WORKFLOW_FIELD = "status"
    WORKFLOW_BYPASS_KWARG = "_workflow_bypass"

    class Meta:
        abstract = True

    def save(self, *args, **kwargs):
        bypass = bool(
            kwargs.pop(self.WORKFLOW_BYPASS_KWARG, False)
            or getattr(self, "_workflow_bypass", False)
        )

        # UUID primary keys are set before the first insert, so use
        # _state.adding rather than pk to detect new rows.
        if not bypass and not self._state.adding and self.WORKFLOW_FIELD:
            old = (
                self.__class__._base_manager.filter(pk=self.pk)
                .values_list(self.WORKFLOW_FIELD, flat=True)
                .first()
            )
            new = getattr(self, self.WORKFLOW_FIELD, None)

            if old is not None and old != new:
                raise PermissionDenied(
                    f"Direct modification of '{self.WORKFLOW_FIELD}' is forbidden. "
                    "Use the clinical record lifecycle service."
                )

        return super().save(*args, **kwargs)
