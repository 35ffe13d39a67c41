"""Valuation pipeline: fetch market values, reshape, deliver, build redirect."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from tradein.catalog.client import CatalogResponseError, VehicleCatalog
from tradein.core.config import RedirectConfig, SinkConfig
from tradein.wizard.models import (
    RESERVED_PAYLOAD_KEYS,
    AttributionMetadata,
    FormState,
    RedirectTarget,
)

logger = logging.getLogger(__name__)

SUBMISSION_ERROR_MESSAGE = "There was an error submitting your request. Please try again."


class SubmissionError(Exception):
    """A submission did not complete. The message is safe to show users."""

    def __init__(self, message: str = SUBMISSION_ERROR_MESSAGE) -> None:
        super().__init__(message)


class SinkRejectedError(Exception):
    """The webhook answered with a non-2xx status."""

    def __init__(self, status_code: int) -> None:
        super().__init__(f"Webhook responded with status {status_code}")
        self.status_code = status_code


def item_key(index: int) -> str:
    """Key under which the ``index``-th trim (0-based) is delivered."""
    return f"item{index}"


def reshape_market_values(entries: list[dict[str, Any]]) -> dict[str, dict[str, Any]]:
    """Flatten the service's per-trim value lists into the webhook's shape.

    Each trim becomes ``{"trim": ..., "market_value": {<Condition>: {"Trade_In",
    "Private_Party", "Dealer_Retail"}}}`` under ``item0``, ``item1``, ... in
    the order the service returned them. Conditions keep their order too.

    Raises:
        CatalogResponseError: If an entry lacks the expected keys.
    """
    reshaped: dict[str, dict[str, Any]] = {}
    try:
        for index, entry in enumerate(entries):
            conditions: dict[str, dict[str, Any]] = {}
            for row in entry["market value"]:
                conditions[row["Condition"]] = {
                    "Trade_In": row["Trade-In"],
                    "Private_Party": row["Private Party"],
                    "Dealer_Retail": row["Dealer Retail"],
                }
            reshaped[item_key(index)] = {"trim": entry["trim"], "market_value": conditions}
    except (KeyError, TypeError) as exc:
        raise CatalogResponseError(f"Malformed market value entry: {exc}") from exc
    return reshaped


def build_payload(
    market_value: dict[str, dict[str, Any]],
    form: FormState,
    attribution: AttributionMetadata,
) -> dict[str, Any]:
    """Assemble the webhook body.

    Attribution fields sit at the top level beside ``marketValue`` and
    ``form_data`` and can never replace either of them.
    """
    payload: dict[str, Any] = {
        "marketValue": market_value,
        "form_data": form.model_dump(),
    }
    for key, value in attribution.values.items():
        if key in RESERVED_PAYLOAD_KEYS:
            logger.warning("Dropping attribution field %r that shadows payload data", key)
            continue
        payload[key] = value
    return payload


def build_redirect(config: RedirectConfig, form: FormState) -> RedirectTarget:
    return RedirectTarget(
        base_url=config.end_url,
        params={
            "utm_name": form.name,
            "utm_email": form.email,
            "utm_phone": form.phone,
        },
    )


class ValuationPipeline:
    """Runs one submission end to end, with no internal retry.

    The payload is assembled in full before the single POST, so the webhook
    either receives a complete submission or nothing.
    """

    def __init__(
        self,
        catalog: VehicleCatalog,
        sink: SinkConfig,
        redirect: RedirectConfig,
        http: httpx.AsyncClient | None = None,
    ) -> None:
        self._catalog = catalog
        self._sink = sink
        self._redirect = redirect
        self._owns_http = http is None
        self._http = http or httpx.AsyncClient(timeout=httpx.Timeout(sink.timeout_seconds))

    async def submit(
        self, form: FormState, attribution: AttributionMetadata
    ) -> RedirectTarget:
        """Value the vehicle, deliver the payload, and return the redirect.

        Raises:
            SubmissionError: If any step fails. The cause is chained and logged.
        """
        form = form.model_copy()
        if not self._sink.webhook_url:
            logger.error("No webhook URL configured; submission not sent")
            raise SubmissionError()
        try:
            entries = await self._catalog.market_value(
                form.year, form.make, form.model, form.state, form.miles
            )
            payload = build_payload(reshape_market_values(entries), form, attribution)
            resp = await self._http.post(self._sink.webhook_url, json=payload)
            if not resp.is_success:
                raise SinkRejectedError(resp.status_code)
        except (httpx.HTTPError, CatalogResponseError, SinkRejectedError) as exc:
            logger.exception(
                "Submission failed for %s %s %s", form.year, form.make, form.model
            )
            raise SubmissionError() from exc

        logger.info("Submission delivered for %s %s %s", form.year, form.make, form.model)
        return build_redirect(self._redirect, form)

    async def close(self) -> None:
        if self._owns_http:
            await self._http.aclose()
