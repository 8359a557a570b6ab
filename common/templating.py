"""
Storefront - Template Configuration
====================================
Jinja2 templates setup with custom filters.
Only the browser-facing payment result page is rendered server-side.
"""

import os

from fastapi.templating import Jinja2Templates

from common.helpers import money

TEMPLATE_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "templates")
templates = Jinja2Templates(directory=TEMPLATE_DIR)


def format_money(value) -> str:
    """Format an amount with thousands separators and two decimals."""
    return "{:,.2f}".format(money(value))


# Filters (usage in template: {{ value | money }})
templates.env.filters["money"] = format_money
