from __future__ import annotations

from contextlib import contextmanager
from typing import Generator

from api.clients.arcadia import ArcadiaClient
from api.clients.genability import GenabilityClient
from api.config import settings
from api.services.counterfactual import CounterfactualBillingService
from api.services.production import BaselineFileSource, ProductionProfileBuilder


def build_service(utility: ArcadiaClient, billing: GenabilityClient) -> CounterfactualBillingService:
    production = ProductionProfileBuilder(
        billing,
        source=BaselineFileSource(settings.SOLAR_PROFILE_PATH),
        start=settings.SOLAR_PROFILE_START,
    )
    return CounterfactualBillingService(utility, billing, production)


@contextmanager
def open_service() -> Generator[CounterfactualBillingService, None, None]:
    """Service backed by fresh provider clients, closed on exit."""
    with ArcadiaClient(
        client_id=settings.ARC_API_CLIENT_ID,
        client_secret=settings.ARC_API_CLIENT_SECRET,
        base_url=settings.ARC_API_BASE_URL,
        api_version=settings.ARC_API_VERSION,
        timeout=settings.HTTP_TIMEOUT,
    ) as utility, GenabilityClient(
        application_id=settings.GENABILITY_APPLICATION_ID,
        application_key=settings.GENABILITY_APPLICATION_KEY,
        base_url=settings.GENABILITY_API_BASE_URL,
        timeout=settings.HTTP_TIMEOUT,
    ) as billing:
        yield build_service(utility, billing)


def get_service() -> Generator[CounterfactualBillingService, None, None]:
    with open_service() as service:
        yield service
