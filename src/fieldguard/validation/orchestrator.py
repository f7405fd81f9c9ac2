"""FormValidator: sequences dependency checks and rule chains for a form.

One FormValidator wraps one built FormDefinition and one live FormState. A
validation pass walks the fields in their registered order:

1. Hidden fields are skipped (file fields with a pending upload excepted)
2. Fields whose dependency conditions do not hold are exempt
3. Otherwise the field's rules run in declaration order; the first rule that
   fails decides the field's outcome

In fail-fast mode the pass stops at the first invalid field; in collect-all
mode (ValidatorSettings.validate_all) every field is visited.

The public methods are coroutines because the mime lookup table used by the
"filetype" rule is read without blocking the event loop before the first
rule that needs it runs. Everything else in a pass is synchronous.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fieldguard.config import ValidatorSettings
from fieldguard.validation.dependencies import DependencyGraph
from fieldguard.validation.errors import DependencyCycleError, ValidationInProgressError
from fieldguard.validation.mimes import MimeTypeResolver
from fieldguard.validation.presentation import NullPresentationAdapter, PresentationAdapter
from fieldguard.validation.rules import RuleCatalog, RuleContext
from fieldguard.validation.types import (
    Field,
    FieldFeedback,
    FieldKind,
    FieldOutcome,
    FormState,
    PassContext,
    PassResult,
    PassStatus,
    UploadInfo,
)

if TYPE_CHECKING:
    from fieldguard.forms.definition import FormDefinition

logger = logging.getLogger(__name__)


class FormValidator:
    """Validates a form's live state against its definition.

    Usage:
        validator = FormValidator(form, state=FormState(values={"email": ""}))
        result = await validator.validate_all()
        result.verdict  # "required"
    """

    def __init__(
        self,
        form: FormDefinition,
        settings: ValidatorSettings | None = None,
        adapter: PresentationAdapter | None = None,
        state: FormState | None = None,
    ):
        self.form = form.build()
        self.settings = settings or form.settings
        self.adapter = adapter or NullPresentationAdapter()
        self.state = state or FormState()
        self.mimes = MimeTypeResolver(self.settings.mimes_path)
        self.status = PassStatus.IDLE

        self._busy = False
        self._validated = False
        self._last_result: PassResult | None = None
        self._outcomes: dict[str, FieldOutcome] = {}
        self._needs_mimes = any(
            RuleCatalog.get(rule.kind).needs_mimes
            for form_field in self.form.fields
            for rule in form_field.rules
        )

    @property
    def graph(self) -> DependencyGraph:
        return self.form.graph

    @property
    def busy(self) -> bool:
        return self._busy

    # =========================================================================
    # Passes
    # =========================================================================

    async def validate_all(self, state: FormState | None = None) -> PassResult:
        """Run a full-form validation pass.

        Clears all presented feedback first, then presents the failures of
        this pass.

        Args:
            state: Replaces the validator's live state when given

        Returns:
            PassResult with the outcome of every visited field

        Raises:
            ValidationInProgressError: If another pass is running
            ConfigurationError: If the form references something that no
                longer resolves
            DependencyCycleError: If dependency resolution loops
        """
        self._enter()
        try:
            if state is not None:
                self.state = state
            self.status = PassStatus.RUNNING

            if self._needs_mimes:
                await self.mimes.load()

            self.clear_errors()
            ctx = PassContext(state=self.state)
            outcomes: dict[str, FieldOutcome] = {}
            valid = True

            for form_field in self.form.fields:
                outcome = self._run_field(form_field, ctx)
                outcomes[form_field.id] = outcome
                self._outcomes[form_field.id] = outcome
                if not outcome.valid:
                    valid = False
                    self.adapter.show(outcome.to_feedback())
                    if not self.settings.validate_all:
                        break

            result = PassResult(valid=valid, outcomes=outcomes)
            self.status = result.status
            self._validated = True
            self._last_result = result
            logger.info(
                'Form "%s": %d field(s) checked, %d invalid',
                self.form.name,
                len(outcomes),
                len(result.failures),
            )
            return result
        except Exception:
            self.status = PassStatus.IDLE
            raise
        finally:
            self._busy = False

    async def validate_field(self, field_id: str) -> bool | str:
        """Re-validate a single field, leaving other fields' outcomes alone.

        Returns:
            True if the field is valid or exempt, else the failing rule kind
        """
        form_field = self.form.get(field_id)
        self._enter()
        try:
            if self._needs_mimes:
                await self.mimes.load()
            outcome = self._run_field(form_field, PassContext(state=self.state))
            self._outcomes[field_id] = outcome
            return outcome.verdict
        finally:
            self._busy = False

    async def submit(self) -> PassResult:
        """Validate on form submission unless this turn already validated.

        The validated flag is reset afterwards either way, so the next
        submission runs a fresh pass.
        """
        try:
            if self._validated and self._last_result is not None:
                logger.debug('Form "%s" already validated this turn', self.form.name)
                return self._last_result
            return await self.validate_all()
        finally:
            self._validated = False

    def _enter(self) -> None:
        if self._busy:
            raise ValidationInProgressError(
                f'A validation pass is already running for form "{self.form.name}"'
            )
        self._busy = True

    def _run_field(self, form_field: Field, ctx: PassContext) -> FieldOutcome:
        if form_field.id in ctx.active:
            path = ctx.active[ctx.active.index(form_field.id):] + [form_field.id]
            raise DependencyCycleError(path)

        state = ctx.state
        value = state.value_of(form_field)

        if form_field.id in state.hidden and not (
            form_field.kind == FieldKind.FILE and form_field.id in state.uploads
        ):
            logger.debug('Field "%s" hidden, skipped', form_field.id)
            return FieldOutcome(field_id=form_field.id, valid=True, value=value, exempt=True)

        if not self.graph.is_satisfied(form_field.id, ctx):
            return FieldOutcome(field_id=form_field.id, valid=True, value=value, exempt=True)

        def validate_other(other_id: str) -> bool | str:
            return self._run_field(self.form.get(other_id), ctx).verdict

        ctx.active.append(form_field.id)
        try:
            for rule in form_field.rules:
                rule_ctx = RuleContext(
                    field=form_field,
                    rule=rule,
                    value=value,
                    state=state,
                    lookup=self.form.get,
                    validate_other=validate_other,
                    mimes=self.mimes,
                )
                if not RuleCatalog.evaluate(rule.kind, rule_ctx):
                    logger.debug('Field "%s" failed rule "%s"', form_field.id, rule.kind)
                    return FieldOutcome(
                        field_id=form_field.id,
                        valid=False,
                        rule=rule.kind,
                        message=rule.message,
                        value=value,
                    )
        finally:
            ctx.active.pop()

        logger.debug('Field "%s" valid', form_field.id)
        return FieldOutcome(field_id=form_field.id, valid=True, value=value)

    # =========================================================================
    # Events
    # =========================================================================

    def notify_change(self, proxy: str) -> dict[str, bool]:
        """A proxy's value changed: recompute its dependents and fire callbacks."""
        return self.graph.proxy_changed(proxy, self.state)

    def refresh_dependencies(self) -> dict[str, bool]:
        """Fire notify_change for every proxy, e.g. after loading default values."""
        results: dict[str, bool] = {}
        for proxy in self.graph.proxies:
            results.update(self.notify_change(proxy))
        return results

    async def on_blur(self, field_id: str) -> bool | str | None:
        """A field lost focus.

        With validate_on_the_fly the field is re-validated and its feedback
        presented or cleared; otherwise its feedback is cleared.

        Returns:
            The field's verdict, or None when nothing was validated
        """
        if not self.settings.validate_on_the_fly:
            self.adapter.clear(field_id)
            return None

        verdict = await self.validate_field(field_id)
        if verdict is True:
            self.adapter.clear(field_id)
        else:
            self.adapter.show(self._outcomes[field_id].to_feedback())
        return verdict

    async def end_file_upload(self, field_id: str, upload: UploadInfo) -> bool | str:
        """Record a finished upload and validate its field.

        The upload record is discarded again if the field is invalid.
        """
        self.form.get(field_id)
        self.state.uploads[field_id] = upload
        verdict = await self.validate_field(field_id)
        if verdict is True:
            self.adapter.clear(field_id)
        else:
            self.state.uploads.pop(field_id, None)
            self.adapter.show(self._outcomes[field_id].to_feedback())
        return verdict

    # =========================================================================
    # Presentation
    # =========================================================================

    def attach_tip(self, field_id: str, message: str) -> None:
        """Present an arbitrary message for a field."""
        self.form.get(field_id)
        self.adapter.show(FieldFeedback(field_id=field_id, valid=False, message=message))

    def clear_errors(self) -> None:
        self.adapter.clear_all()

    def outcome(self, field_id: str) -> FieldOutcome | None:
        """Most recent outcome recorded for a field, if any."""
        return self._outcomes.get(field_id)
