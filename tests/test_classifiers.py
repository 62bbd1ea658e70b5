import re

from envscanner.checkers.env_file import body_sample, looks_like_env_file
from envscanner.checkers.inline_env import find_inline_env_references, is_inline_env_candidate
from envscanner.checkers.secret_keys import find_secret_keys
from envscanner.core.config import MAX_BODY_SIZE

KEY = "sk-" + "a1B2c3D4e5F6g7H8i9J0kLmN"


# ── looks_like_env_file ────────────────────────────────────────

def test_three_env_lines_is_env_file():
    assert looks_like_env_file("A=1\nB=2\nC=3\n")


def test_two_env_lines_is_not():
    assert not looks_like_env_file("A=1\nB=2\n")


def test_comments_and_blank_lines_do_not_matter():
    body = "# db\n\nDB_HOST=localhost\n\n# creds\nDB_USER = root\r\nDB_PASS= secret\n"
    assert looks_like_env_file(body)
    assert looks_like_env_file("\n".join(reversed(body.splitlines())))


def test_lowercase_keys_and_empty_values_are_not_counted():
    assert not looks_like_env_file("a=1\nb=2\nc=3\nEMPTY=\nONE=1\n")


def test_html_page_is_not_env_file():
    assert not looks_like_env_file("<html><body><p>A=1</p></body></html>")


def test_body_sample_keeps_first_ten_lines():
    body = "\n".join(f"K{i}=v" for i in range(30))
    assert body_sample(body).splitlines() == [f"K{i}=v" for i in range(10)]


# ── find_secret_keys ───────────────────────────────────────────

def test_secret_key_match_has_line_and_snippet():
    body = "line one\nconst client = new OpenAI({ apiKey: '" + KEY + "' });\n"
    matches = find_secret_keys(body)
    assert len(matches) == 1
    m = matches[0]
    assert m.line_number == 2
    assert m.matched_text == KEY
    assert KEY in m.context_snippet
    assert len(m.context_snippet) <= len(KEY) + 40


def test_secret_keys_capped_at_five_across_body():
    body = "\n".join(f"k{i} = sk-{'x' * 20}{i:02d} and sk-{'y' * 20}{i:02d}" for i in range(6))
    matches = find_secret_keys(body)
    assert len(matches) == 5
    assert [m.line_number for m in matches] == [1, 1, 2, 2, 3]
    for m in matches:
        assert re.fullmatch(r"sk-[A-Za-z0-9_-]{20,}", m.matched_text, re.I)


def test_short_tokens_are_ignored():
    assert find_secret_keys("sk-tooShort123 and risk-assessment") == []


# ── find_inline_env_references ─────────────────────────────────

def test_two_process_env_lines():
    js = "const a = 1;\nconst url = process.env.API_URL;\n\nfetch(process.env.BACKEND);\n"
    matches = find_inline_env_references(js)
    assert [(m.line_number, m.variable_name) for m in matches] == [(2, "API_URL"), (4, "BACKEND")]
    assert all(m.value is None and m.pattern == "process_env" for m in matches)


def test_window_env_and_meta_env():
    html = ('<meta name="app-env" content="staging">\n'
            '<script>window.__APP_ENV__ = {}; window.runtimeEnv = 1</script>\n')
    matches = find_inline_env_references(html)
    meta = [m for m in matches if m.pattern == "meta_env"]
    assert meta[0].variable_name == "app-env"
    assert meta[0].value == "staging"
    assert meta[0].line_number == 1
    window = [m.variable_name for m in matches if m.pattern == "window_env"]
    assert window == ["__APP_ENV__", "runtimeEnv"]


def test_inline_matches_capped_at_five():
    js = "\n".join(f"x{i} = process.env.VAR_{i};" for i in range(9))
    assert len(find_inline_env_references(js)) == 5


def test_inline_candidates_by_extension():
    assert is_inline_env_candidate("https://a.test/static/app.js")
    assert is_inline_env_candidate("https://a.test/static/app.js?v=3")
    assert is_inline_env_candidate("https://a.test/INDEX.HTML")
    assert is_inline_env_candidate("https://a.test/old.htm")
    assert not is_inline_env_candidate("https://a.test/site.css")
    assert not is_inline_env_candidate("https://a.test/")


# ── input cap ──────────────────────────────────────────────────

FILLER = "." * MAX_BODY_SIZE + "\n"


def test_secret_keys_past_the_cap_are_not_found():
    assert find_secret_keys(FILLER + f'key = "{KEY}"\n') == []
    found = find_secret_keys(f'key = "{KEY}"\n' + FILLER)
    assert [m.matched_text for m in found] == [KEY]


def test_inline_references_past_the_cap_are_not_found():
    line = "const url = process.env.API_URL;\n"
    assert find_inline_env_references(FILLER + line) == []
    found = find_inline_env_references(line + FILLER)
    assert [m.variable_name for m in found] == ["API_URL"]


def test_env_lines_past_the_cap_are_not_counted():
    env = "A=1\nB=2\nC=3\n"
    assert not looks_like_env_file(FILLER + env)
    assert looks_like_env_file(env + FILLER)
