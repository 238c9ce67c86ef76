"""Linked PR list embedded in the anchor PR body.

The anchor body is Markdown that humans may edit. The machine-readable
part is one hidden comment line placed after the status table:

    <!-- codi-repo:links:frontend#12,backend#34 -->

Entries are repo-name#number pairs in merge order. Everything the decoder
needs comes from that line; the visible table is for people only.
"""

import logging
import re

from codi_repo.models import LinkedPR, PRLink, PRState

MARKER_PREFIX = "<!-- codi-repo:links:"
MARKER_SUFFIX = " -->"

BODY_HEADING = "## Cross-Repository PR"
TABLE_HEADING = "### Linked Pull Requests"
MERGE_POLICY = "**Merge Policy:** All-or-nothing - all linked PRs must be approved before merge."

# A marker must sit on its own line; entries may not contain whitespace
_MARKER_RE = re.compile(r"^[ \t]*<!-- codi-repo:links:(\S*) -->[ \t]*$", re.MULTILINE)

LOG = logging.getLogger("codi_repo.services.pr_links")

_OK = ":white_check_mark:"
_WAIT = ":hourglass:"
_NO = ":x:"


def _status_icon(state: PRState) -> str:
    if state == PRState.MERGED:
        return _OK
    if state == PRState.OPEN:
        return _WAIT
    return _NO


def _table_row(pr: LinkedPR) -> str:
    approved = _OK if pr.approved else _WAIT
    checks = _OK if pr.checks_pass else _WAIT
    return (
        f"| {pr.repo_name} | [#{pr.number}]({pr.url}) | {_status_icon(pr.state)} {pr.state.value} "
        f"| {approved} | {checks} |"
    )


def render_marker(links: list[PRLink]) -> str:
    """The hidden marker line for links, in order."""
    return MARKER_PREFIX + ",".join(str(link) for link in links) + MARKER_SUFFIX


def encode(title: str, linked_prs: list[LinkedPR], extra_body: str = "") -> str:
    """Render the anchor PR body: prose, status table, then the marker.

    title is accepted for symmetry with the forge PR fields; GitHub shows
    it above the body so it is not repeated here.
    """
    rows = "\n".join(_table_row(pr) for pr in linked_prs)
    lines = [
        BODY_HEADING,
        "",
        extra_body.strip(),
        "",
        TABLE_HEADING,
        "",
        "| Repository | PR | Status | Approved | Checks |",
        "|------------|-----|--------|----------|--------|",
    ]
    if rows:
        lines.append(rows)
    lines += [
        "",
        MERGE_POLICY,
        "",
        "---",
        render_marker([pr.link for pr in linked_prs]),
        "",
    ]
    return "\n".join(lines)


def _parse_entries(payload: str) -> list[PRLink] | None:
    """Parse "a#1,b#2"; None if any entry is malformed."""
    if not payload:
        return []
    links: list[PRLink] = []
    for entry in payload.split(","):
        repo_name, sep, num = entry.rpartition("#")
        if not sep or not repo_name or not num.isdigit():
            return None
        number = int(num)
        if number <= 0:
            return None
        links.append(PRLink(repo_name=repo_name, number=number))
    return links


def decode(body: str | None) -> list[PRLink]:
    """Linked PR identities from an anchor body, in encoded order.

    Absent or malformed markers give an empty list. When several marker
    lines exist the last one wins, since generated bodies end with it.
    """
    if not body:
        return []
    matches = _MARKER_RE.findall(body)
    if not matches:
        return []
    if len(matches) > 1:
        LOG.warning("Anchor PR body has %d link markers; using the last one", len(matches))
    links = _parse_entries(matches[-1])
    if links is None:
        LOG.warning("Malformed link marker in anchor PR body: %r", matches[-1])
        return []
    return links


def user_body(body: str | None) -> str:
    """Human-written prose of an anchor body, without generated parts.

    For a body produced by encode this is the text between the heading and
    the status table. A body without a marker is returned unchanged.
    """
    if not body:
        return ""
    if not _MARKER_RE.search(body):
        return body.strip()
    text = body
    table_at = text.rfind(TABLE_HEADING)
    if table_at != -1:
        text = text[:table_at]
    else:
        text = _MARKER_RE.sub("", text)
    text = text.strip()
    if text.startswith(BODY_HEADING):
        text = text[len(BODY_HEADING):]
    return text.strip()
