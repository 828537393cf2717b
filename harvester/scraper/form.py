"""Craigslist Harvester — Search Form Submission.

Reads an HTML form out of a fetched page with selectolax, fills in the
search fields and submits it through the rate-limited client. The form
decides the method (GET/POST) and target URL; this module only maps
search parameters onto field names.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urljoin, urlsplit, urlunsplit

from selectolax.parser import Node

from harvester.config import FormConfig
from harvester.errors import FieldNotFoundError, FormNotFoundError
from harvester.models import FetchedPage, SearchParameters
from harvester.scraper.client import CraigslistClient
from harvester.utils.logger import get_logger

logger = get_logger(__name__)

# Controls that never contribute a value unless explicitly clicked
_SKIPPED_INPUT_TYPES = {"submit", "button", "image", "reset", "file"}


def _render_value(value: Any) -> str:
    """Render a field value the way a browser would submit it.

    Integral floats lose their trailing ".0" (1500.0 -> "1500").
    """
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


@dataclass
class HtmlForm:
    """A form's submission target and its current field values.

    Attributes:
        form_id: The id attribute the form was located by.
        action: Absolute URL the form submits to.
        method: Upper-cased HTTP method.
        fields: (name, value) pairs in document order. A name repeats when
            several controls share it (checkbox groups, multi-selects).
    """

    form_id: str
    action: str
    method: str = "GET"
    fields: list[tuple[str, str]] = field(default_factory=list)

    def set(self, name: str, value: Any) -> None:
        """Set the value of the first field called ``name``.

        Raises:
            FieldNotFoundError: If the form declares no field with this name.
        """
        for idx, (field_name, _) in enumerate(self.fields):
            if field_name == name:
                self.fields[idx] = (name, _render_value(value))
                return
        raise FieldNotFoundError(name, self.form_id)

    def names(self) -> list[str]:
        """Distinct field names in document order."""
        return list(dict.fromkeys(name for name, _ in self.fields))


def _select_values(node: Node) -> list[str]:
    options = node.css("option")
    selected = [o for o in options if "selected" in o.attributes]
    if "multiple" in node.attributes:
        chosen = selected
    elif options:
        chosen = [selected[0] if selected else options[0]]
    else:
        chosen = []

    values = []
    for option in chosen:
        value = option.attributes.get("value")
        values.append(value if value is not None else option.text().strip())
    return values


def _collect_fields(form_node: Node) -> list[tuple[str, str]]:
    """Gather the successful controls of a form with their default values."""
    fields: list[tuple[str, str]] = []
    for control in form_node.css("input, select, textarea"):
        attrs = control.attributes
        name = attrs.get("name")
        if not name or "disabled" in attrs:
            continue

        if control.tag == "select":
            fields.extend((name, value) for value in _select_values(control))
        elif control.tag == "textarea":
            fields.append((name, control.text()))
        else:
            input_type = (attrs.get("type") or "text").lower()
            if input_type in _SKIPPED_INPUT_TYPES:
                continue
            if input_type in ("checkbox", "radio"):
                if "checked" not in attrs:
                    continue
                fields.append((name, attrs.get("value") or "on"))
            else:
                fields.append((name, attrs.get("value") or ""))
    return fields


def find_form(page: FetchedPage, form_id: str) -> HtmlForm:
    """Locate a form by id and read its action, method and fields.

    Args:
        page: The page containing the form.
        form_id: Value of the form's id attribute.

    Returns:
        An HtmlForm with the form's default field values.

    Raises:
        FormNotFoundError: If no form on the page has this id.
    """
    node = page.tree.css_first(f'form[id="{form_id}"]')
    if node is None:
        raise FormNotFoundError(form_id, page.url)

    action = node.attributes.get("action") or ""
    method = (node.attributes.get("method") or "GET").upper()
    form = HtmlForm(
        form_id=form_id,
        action=urljoin(page.url, action) if action else page.url,
        method="POST" if method == "POST" else "GET",
        fields=_collect_fields(node),
    )
    logger.debug(
        "Found form '%s': %s %s, fields=%s",
        form_id, form.method, form.action, form.names(),
    )
    return form


class FormSubmitter:
    """Fills and submits the site's search form.

    Attributes:
        client: The shared, rate-limited HTTP client.
        form_config: Field names for the query and price bounds.
    """

    def __init__(self, client: CraigslistClient, form_config: FormConfig) -> None:
        self.client = client
        self.form_config = form_config

    def submit(
        self, page: FetchedPage, form_id: str, params: SearchParameters
    ) -> FetchedPage:
        """Fill the search form on ``page`` and return the result page.

        Args:
            page: Page carrying the search form.
            form_id: The form's id attribute.
            params: Query text and price bounds to enter.

        Returns:
            The page the form submission responded with.

        Raises:
            FormNotFoundError: If the form is missing.
            FieldNotFoundError: If one of the configured field names is missing.
            NetworkError: If the submission request fails.
        """
        form = find_form(page, form_id)
        form.set(self.form_config.query_field, params.query)
        form.set(self.form_config.min_price_field, params.min_price)
        form.set(self.form_config.max_price_field, params.max_price)

        logger.info(
            "Submitting '%s' (query=%r, price %s-%s)",
            form_id, params.query, params.min_price, params.max_price,
        )
        return self._send(form)

    def _send(self, form: HtmlForm) -> FetchedPage:
        if form.method == "POST":
            body: dict[str, list[str]] = {}
            for name, value in form.fields:
                body.setdefault(name, []).append(value)
            return self.client.request("POST", form.action, data=body)

        # GET forms replace whatever query string the action carried
        scheme, netloc, path, _, _ = urlsplit(form.action)
        target = urlunsplit((scheme, netloc, path, "", ""))
        return self.client.request("GET", target, params=list(form.fields))
