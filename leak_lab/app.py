"""LeakLab — deliberately leaky web server for EnvScanner testing.

Exposes dotenv files at the web root and in a crawlable sub-directory,
a JS bundle with inlined ``process.env`` references and an ``sk-`` key,
and an HTML page with environment meta tags, next to the usual decoys
(soft-404 pages, binary downloads, an off-site redirect) so the crawler,
the probes and the classifiers can all be exercised offline.
"""

from flask import Flask, Response, redirect, render_template_string

app = Flask(__name__, static_folder=None)

# Not a real key.
LAB_SECRET_KEY = "sk-lab0123456789abcdefghijklmnop"

ROOT_ENV = """\
# production settings
APP_NAME=leaklab
APP_ENV=production
APP_DEBUG=false
DB_HOST=10.0.0.12
DB_USER=leaklab
DB_PASSWORD=hunter2
REDIS_URL=redis://10.0.0.13:6379/0
"""

APP_ENV_FILE = """\
MAIL_HOST=smtp.leaklab.local
MAIL_USER=noreply
MAIL_PASSWORD=changeme
"""

APP_JS = f"""\
const apiBase = process.env.API_BASE_URL || "/api";
const client = createClient({{ key: "{LAB_SECRET_KEY}" }});

export function dbUrl() {{
  return process.env.DATABASE_URL;
}}
"""

# ── Shared HTML layout ──────────────────────────────────────────

_LAYOUT = """<!DOCTYPE html>
<html><head><title>LeakLab | {{ title }}</title>
{{ head|safe }}
<link rel="stylesheet" href="/static/css/site.css">
</head>
<body>
<h1>LeakLab</h1>
<p><a href="/">Home</a></p>
<h2>{{ title }}</h2>
{{ content|safe }}
</body></html>
"""


def page(title, content, head=""):
    return render_template_string(_LAYOUT, title=title, content=content, head=head)


def text(body, mimetype="text/plain"):
    return Response(body, mimetype=mimetype)


# ══════════════════════════════════════════════════════════════════
#  HOME — links for crawler discovery
# ══════════════════════════════════════════════════════════════════

@app.route("/")
def home():
    return page("Home", """
    <p>Deliberately leaky application for EnvScanner testing.</p>
    <script src="/static/js/app.js"></script>
    <img src="/img/logo.png" alt="logo">
    <ul>
        <li><a href="/app/">Application</a></li>
        <li><a href="/docs/index.html">Docs</a></li>
        <li><a href="/redirect-out">Partner site</a></li>
        <li><a href="https://other.test/page">Elsewhere</a></li>
        <li><a href="mailto:ops@leaklab.local">Contact</a></li>
    </ul>
    """)


@app.route("/app/")
def app_home():
    return page("Application", '<p><a href="settings.html">Settings</a></p>')


@app.route("/app/settings.html")
def app_settings():
    return page("Settings", "<p>Nothing to see here.</p>")


@app.route("/docs/index.html")
def docs():
    head = '<meta name="app-env" content="staging">'
    return page("Docs", """
    <script>
      window.appEnv = { region: "eu-west-1" };
    </script>
    """, head=head)


# ══════════════════════════════════════════════════════════════════
#  Leaks
# ══════════════════════════════════════════════════════════════════

@app.route("/.env")
def root_env():
    return text(ROOT_ENV)


@app.route("/app/.env")
def app_env():
    return text(APP_ENV_FILE)


@app.route("/static/js/app.js")
def app_js():
    return text(APP_JS, mimetype="application/javascript")


@app.route("/static/css/site.css")
def site_css():
    return text("body { font-family: monospace; }\n", mimetype="text/css")


# ══════════════════════════════════════════════════════════════════
#  Decoys
# ══════════════════════════════════════════════════════════════════

@app.route("/config/.env")
def soft_404():
    # 200 with an HTML error page; must not count as a leak
    return page("Not found", "<p>The page you requested does not exist.</p>")


@app.route("/backup/.env")
def binary_env():
    return Response(ROOT_ENV.encode() + b"\x00\x01", mimetype="application/octet-stream")


@app.route("/redirect-out")
def redirect_out():
    return redirect("https://elsewhere.test/leaky/")


@app.route("/leaky/")
def leaky():
    return page("Leaky", "<p>Off-site page.</p>")


# ══════════════════════════════════════════════════════════════════
#  Main
# ══════════════════════════════════════════════════════════════════

if __name__ == "__main__":
    print("\n  LeakLab starting on http://127.0.0.1:5000\n")
    app.run(host="127.0.0.1", port=5000, debug=True)
