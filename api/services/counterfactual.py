"""Counterfactual bill pipeline.

A calculation runs these steps in order, each reading what earlier steps
left on the :class:`CalculationContext`:

    fetch_statement            statement from the utility-data provider
    check_tariff               no I/O; a statement without a tariff stops here
    synchronize_account        only when the request names no billing account
    register_tariff            replace the account's tariff
    purge_profiles             delete every existing profile on the account
    build_usage_profiles       one profile per meter, or one account-level profile
    upsert_production_profile  solar production profile
    calculate_baseline         metered usage only
    calculate_with_production  metered usage plus production

Any failure is re-raised as :class:`PipelineStepError` naming the step.
Between ``purge_profiles`` and the end of ``upsert_production_profile`` the
billing account may be left with only some of its profiles, which the error
reports as ``profiles_incomplete``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

from api.clients.arcadia import ArcadiaClient
from api.clients.genability import GenabilityClient
from api.services.accounts import AccountSynchronizer
from api.services.bill_calculator import BillCalculator
from api.services.production import ProductionProfileBuilder
from api.services.tariffs import TariffRegistrar, require_tariff
from api.services.usage_profiles import UsageProfileBuilder
from lib.types import (
    BillingAccount,
    CounterfactualResult,
    Meter,
    UsageProfile,
    UtilityStatement,
)

log = logging.getLogger(__name__)


class PipelineStepError(Exception):
    """A pipeline step failed; ``cause`` is the original exception."""

    def __init__(self, step: str, cause: Exception, profiles_incomplete: bool = False) -> None:
        self.step = step
        self.cause = cause
        self.profiles_incomplete = profiles_incomplete
        super().__init__(f"Step {step!r} failed: {cause}")


@dataclass
class CalculationSession:
    """Correlates one calculation with the billing account it runs against."""

    utility_statement_id: str
    billing_account_id: Optional[str] = None


@dataclass
class CalculationContext:
    session: CalculationSession
    statement: Optional[UtilityStatement] = None
    meters: list[Meter] = field(default_factory=list)
    production_profile: Optional[UsageProfile] = None
    current_cost: Optional[dict] = None
    current_cost_without_solar: Optional[dict] = None


@dataclass(frozen=True)
class PipelineStep:
    name: str
    run: Callable[[CalculationContext], None]
    leaves_profiles_incomplete: bool = False


class CounterfactualBillingService:

    def __init__(
        self,
        utility: ArcadiaClient,
        billing: GenabilityClient,
        production: ProductionProfileBuilder,
    ) -> None:
        self._utility = utility
        self.accounts = AccountSynchronizer(billing)
        self.tariffs = TariffRegistrar(billing)
        self.usage_profiles = UsageProfileBuilder(utility, billing)
        self.production = production
        self.calculator = BillCalculator(billing)

    # ------------------------------------------------------------------
    # Accounts and statements
    # ------------------------------------------------------------------

    def create_billing_account(self, utility_account_id: str) -> BillingAccount:
        utility_account = self._utility.get_utility_account(utility_account_id)
        return self.accounts.synchronize(utility_account)

    def list_statements(self, utility_account_id: str) -> list[UtilityStatement]:
        return self._utility.get_utility_statements(utility_account_id)

    # ------------------------------------------------------------------
    # Pipeline steps
    # ------------------------------------------------------------------

    def _fetch_statement(self, ctx: CalculationContext) -> None:
        ctx.statement = self._utility.get_utility_statement(ctx.session.utility_statement_id)

    def _check_tariff(self, ctx: CalculationContext) -> None:
        require_tariff(ctx.statement)

    def _synchronize_account(self, ctx: CalculationContext) -> None:
        if ctx.session.billing_account_id:
            return
        billing_account = self.create_billing_account(ctx.statement.utility_account_id)
        ctx.session.billing_account_id = billing_account.account_id

    def _register_tariff(self, ctx: CalculationContext) -> None:
        self.tariffs.register(ctx.session.billing_account_id, ctx.statement)

    def _purge_profiles(self, ctx: CalculationContext) -> None:
        self.usage_profiles.purge_profiles(ctx.session.billing_account_id)

    def _build_usage_profiles(self, ctx: CalculationContext) -> None:
        ctx.meters = self.usage_profiles.build(ctx.session.billing_account_id, ctx.statement)

    def _upsert_production_profile(self, ctx: CalculationContext) -> None:
        ctx.production_profile = self.production.upsert(ctx.session.billing_account_id)

    def _calculate_baseline(self, ctx: CalculationContext) -> None:
        ctx.current_cost = self.calculator.calculate_with_baseline(
            ctx.session.billing_account_id, ctx.statement
        )

    def _calculate_with_production(self, ctx: CalculationContext) -> None:
        ctx.current_cost_without_solar = self.calculator.calculate_with_production(
            ctx.session.billing_account_id, ctx.statement, ctx.production_profile
        )

    def steps(self) -> list[PipelineStep]:
        return [
            PipelineStep("fetch_statement", self._fetch_statement),
            PipelineStep("check_tariff", self._check_tariff),
            PipelineStep("synchronize_account", self._synchronize_account),
            PipelineStep("register_tariff", self._register_tariff),
            PipelineStep("purge_profiles", self._purge_profiles, leaves_profiles_incomplete=True),
            PipelineStep("build_usage_profiles", self._build_usage_profiles, leaves_profiles_incomplete=True),
            PipelineStep("upsert_production_profile", self._upsert_production_profile, leaves_profiles_incomplete=True),
            PipelineStep("calculate_baseline", self._calculate_baseline),
            PipelineStep("calculate_with_production", self._calculate_with_production),
        ]

    # ------------------------------------------------------------------
    # Driver
    # ------------------------------------------------------------------

    def run(self, session: CalculationSession) -> CalculationContext:
        ctx = CalculationContext(session=session)
        for step in self.steps():
            log.info("Statement %s: %s", session.utility_statement_id, step.name)
            try:
                step.run(ctx)
            except Exception as exc:
                log.error(
                    "Statement %s: step %s failed: %s",
                    session.utility_statement_id,
                    step.name,
                    exc,
                )
                raise PipelineStepError(
                    step.name, exc, profiles_incomplete=step.leaves_profiles_incomplete
                ) from exc
        return ctx

    def calculate(
        self,
        utility_statement_id: str,
        billing_account_id: Optional[str] = None,
    ) -> CounterfactualResult:
        """Price a statement as billed and with solar production added back."""
        ctx = self.run(CalculationSession(utility_statement_id, billing_account_id))
        return CounterfactualResult(
            current_cost=ctx.current_cost,
            current_cost_without_solar=ctx.current_cost_without_solar,
            meters_used_in_calculation=ctx.meters,
        )
