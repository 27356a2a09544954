"""
TemplateService -- rate card template administration and label sync.

Responsibility:
    Create, update, duplicate and delete company rate card templates, keep
    the company default, and push template display names onto the rate
    cards linked to a template (Template Sync).

Architecture position:
    Kernel > Services -- imperative shell.  The label merge itself is the
    pure ``contractor_engines.template_sync.apply_template_labels``.

Invariants enforced:
    - Exactly zero or one default template per company, held by the
      company_defaults row.
    - The default template cannot be deleted.
    - Timeframe and category ids survive updates: rows are matched by key
      and edited in place, so rate entries keep resolving.
    - Template Sync touches display names only, one savepoint per card.
      A failing card is rolled back alone and reported; the others commit
      with the caller's transaction.

Failure modes:
    - TemplateNotFoundError, InvalidTemplateError,
      DefaultTemplateDeletionError.
    - Sync failures are collected in TemplateSyncResult.errors, never raised
      (see ``TemplateSyncResult.raise_for_errors``).
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select, update

from contractor_engines.template_sync import SyncFailure, TemplateSyncResult, apply_template_labels
from contractor_kernel.domain.rate_card import RateCard
from contractor_kernel.domain.templates import (
    ExpenseCategory,
    RateCardTemplate,
    TemplateDraft,
    TimeframeDefinition,
    validate_template,
)
from contractor_kernel.exceptions import (
    ContractorCostingError,
    DefaultTemplateDeletionError,
    TemplateNotFoundError,
)
from contractor_kernel.logging_config import get_logger
from contractor_kernel.models.rate_card import RateCardModel
from contractor_kernel.models.rate_card_template import (
    CompanyDefaultsModel,
    RateCardTemplateModel,
    TemplateExpenseCategoryModel,
    TemplateTimeframeModel,
)
from contractor_kernel.services.base import BaseService

logger = get_logger("services.template")

COPY_SUFFIX = " (Copy)"


class TemplateService(BaseService[RateCardTemplateModel]):
    """
    Service for rate card templates.

    All public methods return RateCardTemplate DTOs, not ORM entities.
    """

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def _get_model(self, template_id: UUID) -> RateCardTemplateModel:
        template = self.session.get(RateCardTemplateModel, template_id)
        if template is None:
            raise TemplateNotFoundError(str(template_id))
        return template

    def _defaults(self, company_id: UUID, for_update: bool = False) -> CompanyDefaultsModel | None:
        stmt = select(CompanyDefaultsModel).where(CompanyDefaultsModel.company_id == company_id)
        if for_update:
            stmt = stmt.with_for_update()
        return self.session.execute(stmt).scalar_one_or_none()

    def get_default_template_id(self, company_id: UUID) -> UUID | None:
        defaults = self._defaults(company_id)
        return defaults.default_template_id if defaults else None

    def _to_dto(self, template: RateCardTemplateModel) -> RateCardTemplate:
        return template.to_dto(
            is_default=self.get_default_template_id(template.company_id) == template.id
        )

    def get_template(self, template_id: UUID) -> RateCardTemplate:
        """
        Get a template by id.

        Raises:
            TemplateNotFoundError: If the template doesn't exist.
        """
        return self._to_dto(self._get_model(template_id))

    def get_default_template(self, company_id: UUID) -> RateCardTemplate | None:
        default_id = self.get_default_template_id(company_id)
        return self.get_template(default_id) if default_id else None

    def list_templates(self, company_id: UUID, active_only: bool = False) -> list[RateCardTemplate]:
        """List a company's templates, default first, then by name."""
        stmt = select(RateCardTemplateModel).where(RateCardTemplateModel.company_id == company_id)
        if active_only:
            stmt = stmt.where(RateCardTemplateModel.active.is_(True))
        stmt = stmt.order_by(RateCardTemplateModel.name, RateCardTemplateModel.id)

        default_id = self.get_default_template_id(company_id)
        templates = [
            t.to_dto(is_default=t.id == default_id)
            for t in self.session.execute(stmt).scalars().all()
        ]
        return sorted(templates, key=lambda t: not t.is_default)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_template(
        self,
        company_id: UUID,
        draft: TemplateDraft,
        actor_id: UUID,
        make_default: bool = False,
    ) -> RateCardTemplate:
        """
        Create a template.

        The first template a company creates becomes its default.

        Raises:
            InvalidTemplateError: If the draft fails structural validation.
        """
        validate_template(draft)

        template = RateCardTemplateModel(
            company_id=company_id,
            name=draft.name.strip(),
            description=draft.description,
            resource_categories=list(draft.resource_categories),
            active=draft.active,
            created_by_id=actor_id,
        )
        template.timeframes = [
            _timeframe_model(tf, position) for position, tf in enumerate(draft.timeframe_definitions)
        ]
        template.expense_categories = [
            _category_model(cat, position) for position, cat in enumerate(draft.expense_categories)
        ]
        self.session.add(template)
        self.session.flush()

        if make_default or self.get_default_template_id(company_id) is None:
            self.set_default(company_id, template.id, actor_id)

        logger.info(
            "template_created",
            extra={
                "template_id": str(template.id),
                "company_id": str(company_id),
                "timeframe_count": len(draft.timeframe_definitions),
            },
        )
        return self._to_dto(template)

    def update_template(
        self,
        template_id: UUID,
        draft: TemplateDraft,
        actor_id: UUID,
    ) -> RateCardTemplate:
        """
        Replace a template's content.

        Timeframes and categories are matched by id: existing rows are edited
        in place, new ids are added and missing ids removed.  Linked rate
        cards keep their old labels until ``sync_rate_cards`` runs.
        """
        validate_template(draft)
        template = self._get_model(template_id)

        template.name = draft.name.strip()
        template.description = draft.description
        template.resource_categories = list(draft.resource_categories)
        template.active = draft.active
        template.updated_by_id = actor_id

        existing_tf = {tf.timeframe_key: tf for tf in template.timeframes}
        timeframes = []
        for position, tf in enumerate(draft.timeframe_definitions):
            model = existing_tf.get(tf.id)
            if model is None:
                model = _timeframe_model(tf, position)
            else:
                model.name = tf.name
                model.start_time = tf.start_time
                model.end_time = tf.end_time
                model.position = position
            timeframes.append(model)
        template.timeframes = timeframes

        existing_cat = {cat.category_key: cat for cat in template.expense_categories}
        categories = []
        for position, cat in enumerate(draft.expense_categories):
            model = existing_cat.get(cat.id)
            if model is None:
                model = _category_model(cat, position)
            else:
                model.name = cat.name
                model.position = position
            categories.append(model)
        template.expense_categories = categories

        self.session.flush()
        logger.info("template_updated", extra={"template_id": str(template_id)})
        return self._to_dto(template)

    def set_default(self, company_id: UUID, template_id: UUID, actor_id: UUID) -> RateCardTemplate:
        """Make ``template_id`` the company default, replacing any previous one."""
        template = self._get_model(template_id)
        if template.company_id != company_id:
            raise TemplateNotFoundError(str(template_id))

        defaults = self._defaults(company_id, for_update=True)
        if defaults is None:
            defaults = CompanyDefaultsModel(
                company_id=company_id,
                default_template_id=template_id,
                created_by_id=actor_id,
            )
            self.session.add(defaults)
        else:
            defaults.default_template_id = template_id
            defaults.updated_by_id = actor_id
        self.session.flush()

        logger.info(
            "default_template_set",
            extra={"template_id": str(template_id), "company_id": str(company_id)},
        )
        return template.to_dto(is_default=True)

    def delete_template(self, template_id: UUID, actor_id: UUID) -> None:
        """
        Delete a template.

        Rate cards linked to it are detached and keep their current labels.

        Raises:
            DefaultTemplateDeletionError: If the template is the company default.
        """
        template = self._get_model(template_id)
        if self.get_default_template_id(template.company_id) == template_id:
            raise DefaultTemplateDeletionError(str(template_id))

        detached = self.session.execute(
            update(RateCardModel)
            .where(RateCardModel.template_id == template_id)
            .values(template_id=None, updated_by_id=actor_id)
        ).rowcount
        self.session.delete(template)
        self.session.flush()

        logger.info(
            "template_deleted",
            extra={"template_id": str(template_id), "detached_rate_cards": detached},
        )

    def duplicate_template(
        self,
        template_id: UUID,
        actor_id: UUID,
        name: str | None = None,
    ) -> RateCardTemplate:
        """Copy a template.  The copy is never the default."""
        source = self.get_template(template_id)
        draft = TemplateDraft(
            name=name or f"{source.name}{COPY_SUFFIX}",
            description=source.description,
            timeframe_definitions=source.timeframe_definitions,
            expense_categories=source.expense_categories,
            resource_categories=source.resource_categories,
            active=source.active,
        )
        return self.create_template(source.company_id, draft, actor_id, make_default=False)

    # ------------------------------------------------------------------
    # Template Sync
    # ------------------------------------------------------------------

    def sync_rate_cards(self, template_id: UUID, actor_id: UUID) -> TemplateSyncResult:
        """
        Refresh display names on every rate card linked to a template.

        Each card is relabelled inside its own savepoint.  A failing card is
        rolled back alone and recorded in ``errors``; the batch continues.

        Raises:
            TemplateNotFoundError: If the template doesn't exist.
        """
        template = self.get_template(template_id)
        cards = self.session.execute(
            select(RateCardModel)
            .where(RateCardModel.template_id == template_id)
            .order_by(RateCardModel.name, RateCardModel.id)
        ).scalars().all()

        updated = 0
        errors: list[SyncFailure] = []
        for card in cards:
            card_id = str(card.id)
            try:
                with self.session.begin_nested():
                    relabelled = apply_template_labels(template, card.to_dto())
                    _write_labels(card, relabelled, actor_id)
                    self.session.flush()
            except ContractorCostingError as exc:
                errors.append(SyncFailure(card_id, exc.code, str(exc)))
            except Exception as exc:
                errors.append(SyncFailure(card_id, type(exc).__name__, str(exc)))
            else:
                updated += 1

        result = TemplateSyncResult(
            template_id=str(template_id),
            rate_cards_updated=updated,
            errors=tuple(errors),
        )
        log = logger.info if result.success else logger.warning
        log(
            "template_sync_completed",
            extra={
                "template_id": str(template_id),
                "rate_cards_updated": updated,
                "failed_card_ids": [e.rate_card_id for e in errors],
            },
        )
        return result


def _timeframe_model(tf: TimeframeDefinition, position: int) -> TemplateTimeframeModel:
    return TemplateTimeframeModel(
        timeframe_key=tf.id,
        name=tf.name,
        start_time=tf.start_time,
        end_time=tf.end_time,
        position=position,
    )


def _category_model(cat: ExpenseCategory, position: int) -> TemplateExpenseCategoryModel:
    return TemplateExpenseCategoryModel(category_key=cat.id, name=cat.name, position=position)


def _write_labels(card: RateCardModel, relabelled: RateCard, actor_id: UUID) -> None:
    """Copy display names from the relabelled DTO onto the ORM rows."""
    card.template_name = relabelled.template_name
    card.updated_by_id = actor_id
    for row, entry in zip(card.rates, relabelled.rates):
        row.timeframe_name = entry.timeframe_name
    for row, expense in zip(card.expenses, relabelled.expenses):
        row.category_name = expense.category_name
