"""
PolicyLens HTML Views

Self-contained HTML for the browser surface:
  - render_index_html:    the policy submission form
  - render_results_html:  chunk-by-chunk annotation report

Every user-supplied string is escaped. Works on the stored (plain dict)
form of a result so the same renderer serves fresh and reloaded results.

Usage:
    from policylens.report import render_results_html
    html = render_results_html(store.load(result_id), library)
"""

from __future__ import annotations

from html import escape
from typing import Optional

from policylens.library import PatternLibrary

SEVERITY_COLORS = {
    "low": "#94a3b8",
    "medium": "#f59e0b",
    "moderate": "#f59e0b",
    "high": "#ef4444",
    "critical": "#dc2626",
}

_STYLE = """
  *{margin:0;padding:0;box-sizing:border-box;}
  body{font-family:system-ui,sans-serif;background:#0f172a;color:#e2e8f0;padding:32px;}
  h1{font-size:22px;margin-bottom:16px;}
  .meta{font-size:12px;color:#94a3b8;margin-bottom:24px;}
  .chunk{background:rgba(255,255,255,0.03);border-radius:6px;padding:14px;margin:12px 0;}
  .chunk-text{font-size:14px;line-height:1.5;}
  .offsets{font-size:11px;color:#64748b;margin-top:6px;}
  .ref{border-left:3px solid;padding:6px 10px;margin:8px 0 0 0;font-size:13px;}
  .ref a{color:#8b5cf6;}
  textarea,input{width:100%;background:#1e293b;color:#e2e8f0;border:1px solid #334155;
                 border-radius:4px;padding:8px;margin:6px 0 14px 0;}
  button{background:#8b5cf6;color:white;border:none;border-radius:4px;padding:10px 18px;}
"""


def _page(title: str, body: str) -> str:
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="UTF-8">
<meta name="viewport" content="width=device-width, initial-scale=1.0">
<title>{escape(title)}</title>
<style>{_STYLE}</style>
</head>
<body>
{body}
</body>
</html>"""


def render_index_html() -> str:
    """The submission form. Posts JSON to /analyze and opens the report."""
    body = """
<h1>PolicyLens</h1>
<form id="analyze-form">
  <label for="source">Source</label>
  <input id="source" name="source" placeholder="https://example.com/privacy">
  <label for="policy">Policy text</label>
  <textarea id="policy" name="policy" rows="18"></textarea>
  <button type="submit">Analyze</button>
</form>
<div id="error" class="meta"></div>
<script>
document.getElementById("analyze-form").addEventListener("submit", async (e) => {
  e.preventDefault();
  const r = await fetch("/analyze", {
    method: "POST",
    headers: {"Content-Type": "application/json"},
    body: JSON.stringify({
      policy: document.getElementById("policy").value,
      source: document.getElementById("source").value,
    }),
  });
  const data = await r.json();
  if (!r.ok) {
    document.getElementById("error").textContent = data.detail || "Analysis failed";
    return;
  }
  window.location = "/results/" + data.id + "/report";
});
</script>"""
    return _page("PolicyLens", body)


def _reference_html(ref: dict, library: Optional[PatternLibrary]) -> str:
    severity = str(ref.get("severity", ""))
    color = SEVERITY_COLORS.get(severity.lower(), "#94a3b8")
    title = ref.get("source_title", "")
    url = ref.get("source_url", "")

    # Fall back to the live library for entries stored without metadata
    pattern = library.get(ref.get("pattern_id", "")) if library is not None else None
    if pattern is not None:
        title = title or pattern.source_title
        url = url or pattern.source_url

    source_html = ""
    if url:
        source_html = (
            f' &middot; <a href="{escape(url)}" rel="noopener">'
            f'{escape(title or url)}</a>'
        )
    elif title:
        source_html = f" &middot; {escape(title)}"

    return f"""
    <div class="ref" style="border-color:{color};">
      <strong>{escape(str(ref.get("pattern_id", "")))}</strong>
      <span style="color:{color};text-transform:uppercase;font-size:11px;">{escape(severity)}</span>
      <span style="font-size:11px;color:#94a3b8;">confidence: {escape(str(ref.get("confidence", "")))}</span>
      <div>{escape(str(ref.get("description", "")))}{source_html}</div>
    </div>"""


def render_results_html(result: dict, library: Optional[PatternLibrary] = None) -> str:
    """Render a stored analysis result as an HTML report."""
    chunks = result.get("chunks", [])
    total_refs = sum(len(c.get("references", [])) for c in chunks)
    result_id = escape(str(result.get("id", "")))

    chunks_html = ""
    for c in chunks:
        refs = c.get("references", [])
        refs_html = "".join(_reference_html(r, library) for r in refs)
        chunks_html += f"""
  <div class="chunk">
    <div class="chunk-text">{escape(c.get("text", ""))}</div>
    <div class="offsets">chars {int(c.get("start", 0))}&ndash;{int(c.get("end", 0))}
      &middot; {len(refs)} match{'es' if len(refs) != 1 else ''}</div>
    {refs_html}
  </div>"""

    body = f"""
<h1>Analysis of {escape(str(result.get("source", "")))}</h1>
<div class="meta">
  {escape(str(result.get("date", ""))[:19].replace("T", " "))}
  &middot; {len(chunks)} chunk{'s' if len(chunks) != 1 else ''}
  &middot; {total_refs} match{'es' if total_refs != 1 else ''}
  &middot; <a href="/download/{result_id}" style="color:#8b5cf6;">download JSON</a>
</div>
{chunks_html}"""
    return _page("PolicyLens Results", body)
