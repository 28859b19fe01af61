from __future__ import annotations

import html


STATUS_COLORS = {
    "open": "#007bff",
    "in progress": "#fd7e14",
    "closed": "#6c757d",
}

PRIORITY_COLORS = {
    "high": "#dc3545",
    "medium": "#fd7e14",
    "low": "#28a745",
}

DEFAULT_COLOR = "#6c757d"


def ticket_link(base_url: str, project_id: int) -> str:
    return f"{base_url.rstrip('/')}/projects/{project_id}"


def _esc(value: str | None) -> str:
    return html.escape(value or "-")


def _badge(label: str, color: str) -> str:
    return (
        f"<span style=\"display:inline-block;padding:4px 10px;border-radius:999px;"
        f"background:#ffffff;color:{color};border:1px solid {color};font-size:12px;font-weight:600;\">"
        f"{_esc(label)}"
        "</span>"
    )


def status_badge(status: str) -> str:
    return _badge(status, STATUS_COLORS.get((status or "").lower(), DEFAULT_COLOR))


def priority_badge(priority: str) -> str:
    return _badge(priority, PRIORITY_COLORS.get((priority or "").lower(), DEFAULT_COLOR))


def render_plain(
    *,
    alert_type: str,
    summary: str,
    fields: list[tuple[str, str]],
    status: str,
    priority: str,
    link_url: str,
    changes: list[tuple[str, str, str]] | None = None,
) -> str:
    lines: list[str] = []
    lines.append(f"BugTracker | {alert_type}")
    lines.append("")
    lines.append(summary)
    lines.append("")
    for label, value in fields:
        lines.append(f"- {label}: {value}")
    lines.append(f"- Status: {status}")
    lines.append(f"- Priority: {priority}")
    if changes:
        lines.append("")
        lines.append("Changes made:")
        for label, old, new in changes:
            lines.append(f"- {label}: {old} -> {new}")
    lines.append("")
    lines.append(f"View ticket: {link_url}")
    lines.append("")
    lines.append("This is an automated notification from BugTracker Issue Management System.")
    return "\n".join(lines)


def render_html(
    *,
    alert_type: str,
    summary: str,
    fields: list[tuple[str, str]],
    status: str,
    priority: str,
    link_url: str,
    changes: list[tuple[str, str, str]] | None = None,
) -> str:
    rows = "".join(
        f"""
        <tr>
          <td style=\"padding:8px 0;color:#6b7280;font-size:13px;width:140px;\">{_esc(label)}</td>
          <td style=\"padding:8px 0;color:#111827;font-size:14px;font-weight:600;\">{_esc(value)}</td>
        </tr>
        """
        for label, value in fields
    )
    change_block = ""
    if changes:
        items = "".join(
            f"<li><strong>{_esc(label)}:</strong> {_esc(old)} &rarr; {_esc(new)}</li>"
            for label, old, new in changes
        )
        change_block = f"""
                <p style=\"margin:16px 0 4px;font-weight:700;color:#111827;\">Changes made:</p>
                <ul style=\"color:#666666;line-height:1.6;\">{items}</ul>
        """

    return f"""
<!DOCTYPE html>
<html lang=\"en\">
  <body style=\"margin:0;padding:24px;background:#ffffff;font-family:Arial,sans-serif;\">
    <table role=\"presentation\" width=\"600\" cellspacing=\"0\" cellpadding=\"0\" style=\"width:600px;margin:0 auto;border:1px solid #e5e7eb;border-radius:8px;\">
      <tr>
        <td style=\"padding:20px;background:linear-gradient(135deg,#667eea 0%,#764ba2 100%);text-align:center;\">
          <div style=\"color:#ffffff;font-size:22px;font-weight:700;\">BugTracker</div>
          <div style=\"color:#ffffff;font-size:12px;\">{_esc(alert_type)}</div>
        </td>
      </tr>
      <tr>
        <td style=\"padding:24px;\">
          <div style=\"font-size:18px;font-weight:700;color:#111827;\">{_esc(summary)}</div>
          <div style=\"margin-top:12px;\">
            {status_badge(status)}
            <span style=\"display:inline-block;width:8px;\"></span>
            {priority_badge(priority)}
          </div>
          <table role=\"presentation\" width=\"100%\" cellspacing=\"0\" cellpadding=\"0\" style=\"margin-top:16px;border-collapse:collapse;\">
            {rows}
          </table>
          {change_block}
          <div style=\"margin-top:18px;text-align:center;\">
            <a href=\"{_esc(link_url)}\" style=\"display:inline-block;padding:12px 24px;background:#667eea;color:#ffffff;text-decoration:none;border-radius:6px;\">View Ticket</a>
          </div>
        </td>
      </tr>
      <tr>
        <td style=\"padding:15px;background:#e9ecef;text-align:center;color:#666666;font-size:12px;\">
          This is an automated notification from BugTracker Issue Management System.
        </td>
      </tr>
    </table>
  </body>
</html>
    """.strip()


def wrap_template(
    *,
    alert_type: str,
    summary: str,
    fields: list[tuple[str, str]],
    status: str,
    priority: str,
    link_url: str,
    changes: list[tuple[str, str, str]] | None = None,
) -> tuple[str, str]:
    text = render_plain(
        alert_type=alert_type,
        summary=summary,
        fields=fields,
        status=status,
        priority=priority,
        link_url=link_url,
        changes=changes,
    )
    body = render_html(
        alert_type=alert_type,
        summary=summary,
        fields=fields,
        status=status,
        priority=priority,
        link_url=link_url,
        changes=changes,
    )
    return text, body
