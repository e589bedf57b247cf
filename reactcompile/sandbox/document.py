"""
Sandbox document — The HTML shell an isolated frame loads.

Contents, in order: import map, body styling, theme bootstrap
(`window.__THEME__`), in-document error reporter, `#root`, one module
script. Errors inside the frame are rendered into its own `#root` as
`<pre data-sandbox-error>` via textContent, never as markup.
"""

import base64
import re
from typing import Dict, Optional

import orjson

from ..core.externals import ExternalPackages

ERROR_MARKER = "data-sandbox-error"
DEFAULT_BACKGROUND = "#000000"
DEFAULT_FOREGROUND = "#fafafa"

CSS_VALUE = re.compile(r"^[#\w\s(),.%-]+$")
SCRIPT_CLOSE = re.compile(r"</(script)", re.IGNORECASE)
COMMENT_OPEN = re.compile(r"<!--")

ERROR_REPORTER = """\
window.__reportError = function (error, title) {
  var root = document.getElementById("root");
  if (!root) return;
  var pre = document.createElement("pre");
  pre.setAttribute("%(marker)s", "");
  pre.style.cssText = "color: #ef4444; padding: 16px; white-space: pre-wrap; font-family: monospace;";
  var detail = error && error.stack ? error.stack : String(error && error.message ? error.message : error);
  pre.textContent = (title || "Error") + ": " + detail;
  root.replaceChildren(pre);
};
window.addEventListener("error", function (event) {
  window.__reportError(event.error || event.message, "Uncaught error");
});
window.addEventListener("unhandledrejection", function (event) {
  window.__reportError(event.reason, "Unhandled rejection");
});
""" % {"marker": ERROR_MARKER}

TEMPLATE = """\
<!DOCTYPE html>
<html>
<head>
<meta charset="UTF-8">
<meta name="viewport" content="width=device-width, initial-scale=1.0">
<script type="importmap">
{import_map}
</script>
<style>
* {{ box-sizing: border-box; margin: 0; padding: 0; }}
body {{ font-family: system-ui, -apple-system, sans-serif; background: {background}; color: {foreground}; }}
</style>
<script>
window.__THEME__ = {theme};
{reporter}</script>
</head>
<body>
<div id="root"></div>
<script type="module">
{script}
</script>
</body>
</html>
"""


def escape_script(code: str) -> str:
    """Make code safe to inline in a <script> element."""
    code = SCRIPT_CLOSE.sub(r"<\\/\1", code)
    return COMMENT_OPEN.sub(r"<\\!--", code)


def escape_json(data: str) -> str:
    """JSON text safe to inline in a <script> element."""
    return data.replace("<", "\\u003c")


def css_value(value: Optional[str], fallback: str) -> str:
    if value and CSS_VALUE.match(value):
        return value.strip()
    return fallback


def build_document(
    script: str,
    externals: ExternalPackages,
    theme_colors: Optional[Dict[str, str]] = None,
    background: str = DEFAULT_BACKGROUND,
    foreground: str = DEFAULT_FOREGROUND,
) -> str:
    """
    Wrap a module script in the sandbox document shell.

    Args:
        script: ES module code (bundle, or registry harness)
        externals: Packages listed in the import map
        theme_colors: Exposed as window.__THEME__; `bg` and `text` also style the body
        background, foreground: Body colors when the theme omits them
    """
    theme = dict(theme_colors or {})
    return TEMPLATE.format(
        import_map=escape_json(externals.import_map_json()),
        background=css_value(theme.get("bg"), background),
        foreground=css_value(theme.get("text"), foreground),
        theme=escape_json(orjson.dumps(theme).decode("utf-8")),
        reporter=ERROR_REPORTER,
        script=escape_script(script),
    )


def to_data_url(document: str) -> str:
    encoded = base64.b64encode(document.encode("utf-8")).decode("ascii")
    return f"data:text/html;charset=utf-8;base64,{encoded}"


def from_data_url(url: str) -> str:
    """Inverse of to_data_url (used by tooling and tests that inspect frames)."""
    prefix, _, payload = url.partition(",")
    if not prefix.startswith("data:text/html") or not prefix.endswith(";base64"):
        raise ValueError(f"Not a base64 HTML data URL: {prefix}")
    return base64.b64decode(payload).decode("utf-8")
