from html import escape
from urllib.parse import urlencode

from flask import Blueprint, request, current_app

pay_pages_bp = Blueprint("pay_pages", __name__)

_PAGES = {
    "success": ("Payment approved", "#0a7"),
    "failure": ("Payment rejected", "#b00020"),
    "pending": ("Payment pending", "#915f00"),
}


def _deep_link(status: str) -> str:
    params = [("status", status)] + list(request.args.items(multi=True))
    return f"{current_app.config.get('APP_DEEP_LINK')}?{urlencode(params)}"


def _render(status: str):
    # The processor redirects the browser here; bounce straight back into the app
    title, color = _PAGES[status]
    link = escape(_deep_link(status), quote=True)
    return f"""<!doctype html>
<html>
  <head>
    <meta http-equiv="refresh" content="0;url='{link}'" />
    <meta name="viewport" content="width=device-width, initial-scale=1" />
    <title>{title}</title>
  </head>
  <body style="font-family: system-ui; max-width: 560px; margin: 40px auto;">
    <h2 style="color: {color};">{title}</h2>
    <p>Taking you back to the app.</p>
    <p>If nothing happens, <a href="{link}">tap here</a>.</p>
  </body>
</html>
""", 200, {"Content-Type": "text/html; charset=utf-8"}


@pay_pages_bp.get("/pay/success")
def pay_success():
    return _render("success")


@pay_pages_bp.get("/pay/failure")
def pay_failure():
    return _render("failure")


@pay_pages_bp.get("/pay/pending")
def pay_pending():
    return _render("pending")
