"""Jinja2 template renderer for warranty expiration messages.

Resolves templates with a two-tier loader:
1. User-specified ``templates_path`` (overrides)
2. Built-in templates shipped with the package

HTML templates are autoescaped; ``.txt`` templates (subject, SMS) are
rendered verbatim.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from jinja2 import (
    BaseLoader,
    ChoiceLoader,
    Environment,
    FileSystemLoader,
    PackageLoader,
    select_autoescape,
)

from warrantywatch.core.urgency import TIER_COLORS, TIER_LABELS
from warrantywatch.models.notification import WarrantyMessage

if TYPE_CHECKING:
    from warrantywatch.models.notification import ExpiringWarranty

TEMPLATE_PREFIX = "warranty_expiration"

# SMS is prefixed with "URGENT: " at or below this many days left
SMS_URGENT_MAX_DAYS = 3


class TemplateRenderer:
    """Renders the email subject/body and SMS text for a candidate."""

    def __init__(self, templates_path: str | None = None, app_name: str = "Warranty App") -> None:
        loaders: list[BaseLoader] = []
        if templates_path:
            loaders.append(FileSystemLoader(templates_path))
        loaders.append(PackageLoader("warrantywatch.notifications", "templates"))

        self._app_name = app_name
        self._env = Environment(
            loader=ChoiceLoader(loaders),
            autoescape=select_autoescape(enabled_extensions=("html",), default=False),
            keep_trailing_newline=False,
        )

    def render_template(self, name: str, context: dict[str, Any]) -> str:
        return self._env.get_template(name).render(**context)

    def build_context(self, candidate: ExpiringWarranty) -> dict[str, Any]:
        """Template variables for one candidate."""
        record = candidate.record
        days_left = candidate.days_left
        return {
            "app_name": self._app_name,
            "product_name": record.display_name,
            "merchant": record.merchant,
            "purchase_date": record.purchase_date,
            "expiration_date": candidate.expiration_date,
            "expiration_date_display": candidate.expiration_date.strftime("%m/%d/%Y"),
            "days_left": days_left,
            "days_overdue": -days_left if days_left < 0 else 0,
            "expired": days_left < 0,
            "urgent": 0 <= days_left <= SMS_URGENT_MAX_DAYS,
            "tier": candidate.tier.value,
            "tier_label": TIER_LABELS[candidate.tier],
            "tier_color": TIER_COLORS[candidate.tier],
            "receipt_id": str(record.id),
        }

    def render(self, candidate: ExpiringWarranty) -> WarrantyMessage:
        """Render every channel's content for *candidate*.

        Raises :class:`jinja2.TemplateError` if a template is missing
        or broken.
        """
        context = self.build_context(candidate)
        subject = self.render_template(f"{TEMPLATE_PREFIX}_subject.txt", context)
        html_body = self.render_template(f"{TEMPLATE_PREFIX}_body.html", context)
        text_body = self.render_template(f"{TEMPLATE_PREFIX}_sms.txt", context)
        return WarrantyMessage(
            subject=" ".join(subject.split()),
            html_body=html_body,
            text_body=" ".join(text_body.split()),
            record_id=candidate.record_id,
            tier=candidate.tier,
        )
