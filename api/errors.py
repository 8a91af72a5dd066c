"""Error taxonomy for the counterfactual billing pipeline.

Every failure surfaced to a caller is one of:

* :class:`ValidationError` - bad input detected locally, no network call made.
* :class:`UtilityAccountNotFoundError` - the utility-data provider answered
  403 or 404 for an account.  Both mean the same thing to a caller, so they
  collapse into a single client error with a fixed message.
* :class:`UpstreamError` - any other non-2xx answer from a provider, carried
  with its original status and body.

Anything else (connection failures, timeouts) is left to propagate and ends
up as a generic server error.
"""

from __future__ import annotations

from typing import Any

NOT_FOUND_STATUSES = frozenset({403, 404})

UTILITY_ACCOUNT_NOT_FOUND_MESSAGE = (
    "Could not find this utility account, or utility account does not "
    "belong to your tenant in this environment"
)


class CounterfactualError(Exception):
    status_code: int = 500

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    @property
    def detail(self) -> Any:
        return self.message


class ValidationError(CounterfactualError):
    status_code = 400


class MissingTariffError(ValidationError):
    def __init__(self, utility_statement_id: str) -> None:
        self.utility_statement_id = utility_statement_id
        super().__init__(
            f"Utility statement {utility_statement_id} does not have a known tariff"
        )


class UtilityAccountNotFoundError(CounterfactualError):
    status_code = 400

    def __init__(self) -> None:
        super().__init__(UTILITY_ACCOUNT_NOT_FOUND_MESSAGE)


class UpstreamError(CounterfactualError):
    """Raised when a provider returns a non-2xx response."""

    def __init__(self, status_code: int, body: Any) -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(f"Upstream error {status_code}: {body}")

    @property
    def detail(self) -> Any:
        return self.body


def map_upstream_error(
    status_code: int,
    body: Any,
    normalize_not_found: bool = False,
) -> CounterfactualError:
    """Translate an upstream HTTP status into an error variant.

    Args:
        status_code: HTTP status returned by the provider.
        body: Parsed response body (or raw text when it is not JSON).
        normalize_not_found: Collapse 403/404 into
            :class:`UtilityAccountNotFoundError`.  Only the utility account
            lookup asks for this.
    """
    if normalize_not_found and status_code in NOT_FOUND_STATUSES:
        return UtilityAccountNotFoundError()
    return UpstreamError(status_code, body)
