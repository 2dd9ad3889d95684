"""HTML bodies for notification emails."""

from html import escape

PRIORITY_COLORS = {
    "low": "#10B981",
    "medium": "#F59E0B",
    "high": "#EF4444",
    "critical": "#DC2626",
}

PRIORITY_LABELS = {
    "low": "Low Priority",
    "medium": "Medium Priority",
    "high": "High Priority",
    "critical": "CRITICAL",
}

SEVERITY_CONFIG = {
    "info": {"color": "#3B82F6", "icon": "ℹ️", "label": "INFO"},
    "warning": {"color": "#F59E0B", "icon": "⚠️", "label": "WARNING"},
    "error": {"color": "#EF4444", "icon": "❌", "label": "ERROR"},
    "critical": {"color": "#DC2626", "icon": "🚨", "label": "CRITICAL ALERT"},
}

_PAGE = """<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{title}</title>
</head>
<body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px;">
    <div style="background: linear-gradient(135deg, #667eea 0%, #764ba2 100%); padding: 30px; border-radius: 10px; color: white; text-align: center; margin-bottom: 30px;">
        <h1 style="margin: 0; font-size: 28px;">OphthalmoTech</h1>
        <p style="margin: 10px 0 0 0; opacity: 0.9;">Medical Device Management Platform</p>
    </div>
    <div style="background: #f8f9fa; padding: 25px; border-radius: 8px; border-left: 5px solid {accent};">
        {body}
        <div style="text-align: center; margin-top: 25px;">
            <a href="{dashboard_url}" style="background: {accent}; color: white; padding: 12px 24px; border-radius: 6px; text-decoration: none;">{action}</a>
        </div>
    </div>
    <div style="text-align: center; margin-top: 30px; font-size: 12px; color: #888;">
        <p>{footer}</p>
        <p>Please do not reply to this email.</p>
    </div>
</body>
</html>
"""


def _rows(rows: list[tuple[str, str]]) -> str:
    cells = "".join(
        f'<tr><td style="padding: 8px 0; font-weight: bold; color: #555;">'
        f"{escape(label)}:</td><td style=\"padding: 8px 0;\">{escape(value)}</td></tr>"
        for label, value in rows
    )
    return (
        '<div style="background: white; padding: 20px; border-radius: 6px;">'
        f'<table style="width: 100%; border-collapse: collapse;">{cells}</table></div>'
    )


def _badge(text: str, color: str) -> str:
    return (
        f'<div style="display: inline-block; background: {color}; color: white; '
        "padding: 5px 12px; border-radius: 20px; font-size: 12px; "
        f'font-weight: bold; text-transform: uppercase;">{escape(text)}</div>'
    )


def maintenance_email(
    device_name: str,
    maintenance_type: str,
    due_date: str,
    priority: str,
    dashboard_url: str,
) -> str:
    color = PRIORITY_COLORS[priority]
    body = _badge(PRIORITY_LABELS[priority], color)
    body += '<h2 style="color: #2c3e50;">Maintenance Required</h2>'
    body += _rows(
        [
            ("Device", device_name),
            ("Maintenance Type", maintenance_type),
            ("Due Date", due_date),
        ]
    )
    if priority == "critical":
        body += (
            '<div style="background: #FEF2F2; border: 1px solid #FECACA; '
            'padding: 15px; border-radius: 6px; margin-top: 20px;">'
            "<strong>Immediate action required.</strong> This device should not be "
            "used on patients until maintenance is complete.</div>"
        )
    return _PAGE.format(
        title="OphthalmoTech Maintenance Alert",
        accent=color,
        body=body,
        dashboard_url=dashboard_url,
        action="View in OphthalmoTech Dashboard",
        footer=(
            "This is an automated notification from OphthalmoTech Medical "
            "Device Management Platform."
        ),
    )


def device_alert_email(
    device_name: str,
    alert_type: str,
    alert_message: str,
    severity: str,
    dashboard_url: str,
) -> str:
    config = SEVERITY_CONFIG[severity]
    body = _badge(f"{config['icon']} {config['label']}", config["color"])
    body += '<h2 style="color: #2c3e50;">Device Alert</h2>'
    body += _rows(
        [
            ("Device", device_name),
            ("Alert Type", alert_type),
            ("Message", alert_message),
        ]
    )
    if severity == "critical":
        body += (
            '<div style="background: #FEF2F2; border: 1px solid #FECACA; '
            'padding: 15px; border-radius: 6px; margin-top: 20px;">'
            "<strong>Critical alert.</strong> Please acknowledge and respond "
            "immediately.</div>"
        )
    return _PAGE.format(
        title="OphthalmoTech Device Alert",
        accent=config["color"],
        body=body,
        dashboard_url=dashboard_url,
        action="Acknowledge Alert",
        footer="This is an automated alert from OphthalmoTech Device Monitoring System.",
    )


def report_email(
    report_title: str,
    report_content: str,
    dashboard_url: str,
    attachment_url: str | None = None,
    attachment_name: str | None = None,
) -> str:
    # report_content is trusted HTML produced by our own services
    body = f'<h2 style="color: #2c3e50;">{escape(report_title)}</h2>'
    body += f'<div style="background: white; padding: 20px; border-radius: 6px;">{report_content}</div>'
    if attachment_url:
        label = escape(attachment_name or "Download")
        body += (
            '<p style="margin-top: 20px;">📎 <strong>Attachment:</strong> '
            f'<a href="{escape(attachment_url)}">{label}</a></p>'
        )
    return _PAGE.format(
        title="OphthalmoTech Report",
        accent="#667eea",
        body=body,
        dashboard_url=dashboard_url,
        action="View Full Dashboard",
        footer="This report was generated by OphthalmoTech.",
    )
