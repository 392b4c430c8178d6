"""Common Marshmallow schemas shared across resources."""

from __future__ import annotations

from marshmallow import EXCLUDE, Schema, fields, validate

# Upper bound for both ``page`` and ``per_page`` query parameters
MAX_PAGE_VALUE = 99


class PaginationQuerySchema(Schema):
    """Validate ``page`` and ``per_page`` query parameters (both 1..99)."""

    class Meta:
        unknown = EXCLUDE

    page = fields.Integer(load_default=1, validate=validate.Range(min=1, max=MAX_PAGE_VALUE))
    per_page = fields.Integer(
        load_default=10, validate=validate.Range(min=1, max=MAX_PAGE_VALUE)
    )


class PageMetaSchema(Schema):
    """Metadata block for paginated responses."""

    total_items = fields.Integer(required=True)
    total_pages = fields.Integer(required=True)
    page = fields.Integer(required=True)
    per_page = fields.Integer(required=True)
    has_next_page = fields.Boolean(required=True)
    has_previous_page = fields.Boolean(required=True)
