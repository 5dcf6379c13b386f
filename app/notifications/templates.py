"""HTML and plain-text bodies for admission emails."""

from datetime import datetime
from html import escape
from typing import Optional, Tuple

_STYLE = """
    body { margin: 0; padding: 0; font-family: 'Helvetica Neue', Helvetica, Arial, sans-serif; background-color: #f8f9fa; color: #333; }
    .container { max-width: 600px; margin: 40px auto; background: #ffffff; border-radius: 16px; overflow: hidden; }
    .content { padding: 40px; }
    .h1 { font-size: 24px; font-weight: 700; color: #1a1a1a; margin: 0 0 16px 0; }
    .p { font-size: 16px; line-height: 1.6; color: #4a4a4a; margin: 0 0 24px 0; }
    .box { background: #f8f9fa; border: 1px solid #e9ecef; border-radius: 12px; padding: 24px; margin: 32px 0; }
    .box-label { font-size: 12px; text-transform: uppercase; letter-spacing: 1px; color: #868e96; font-weight: 600; }
    .box-value { font-size: 18px; font-family: 'Monaco', 'Consolas', monospace; color: #212529; }
    .btn { display: inline-block; background: #000000; color: #ffffff; text-decoration: none; padding: 16px 32px; border-radius: 50px; }
    .footer { background: #f8f9fa; padding: 32px; text-align: center; font-size: 13px; color: #868e96; }
"""


def _wrap(title: str, name: str, content: str) -> str:
    return f"""<!DOCTYPE html>
<html>
<head><meta charset="UTF-8"><style>{_STYLE}</style></head>
<body>
  <div class="container">
    <div class="content">
      <h1 class="h1">{escape(title)}</h1>
      <p class="p">Dear {escape(name)},</p>
      {content}
      <p class="p">Best regards,<br><strong>Admissions Office</strong></p>
    </div>
    <div class="footer">
      <p>&copy; {datetime.utcnow().year} University Management System. All rights reserved.</p>
      <p>This is an automated message, please do not reply.</p>
    </div>
  </div>
</body>
</html>"""


def approval_email(
    name: str, email: str, student_code: str, temp_password: str, login_url: str
) -> Tuple[str, str, str]:
    """Returns (subject, plain text, html)."""
    subject = "Application Approved - Welcome to UMS"
    text = "\n".join([
        f"Dear {name},",
        "",
        "Your application to the University Management System has been approved.",
        "",
        f"Student ID: {student_code}",
        f"Email: {email}",
        f"Temporary password: {temp_password}",
        "",
        "You will be asked to change this password at your first login.",
        f"Log in: {login_url}",
    ])
    content = f"""
      <p class="p">We are pleased to inform you that your application has been <strong>approved</strong>.</p>
      <div class="box">
        <span class="box-label">Student ID</span><div class="box-value">{escape(student_code)}</div>
        <span class="box-label">Email Address</span><div class="box-value">{escape(email)}</div>
        <span class="box-label">Temporary Password</span><div class="box-value">{escape(temp_password)}</div>
      </div>
      <p class="p">You will be required to change your password upon your first login.</p>
      <div style="text-align: center;"><a href="{escape(login_url)}" class="btn">Access Student Portal</a></div>
    """
    return subject, text, _wrap("Welcome to UMS", name, content)


def rejection_email(name: str, reason: Optional[str]) -> Tuple[str, str, str]:
    subject = "Update on Your Application"
    lines = [
        f"Dear {name},",
        "",
        "After careful review of your application, we are unable to offer you admission at this time.",
    ]
    reason_box = ""
    if reason:
        lines.extend(["", f"Reason for decision: {reason}"])
        reason_box = (
            '<div class="box"><span class="box-label">Reason for Decision</span>'
            f'<p class="p">{escape(reason)}</p></div>'
        )
    content = f"""
      <p class="p">Thank you for your interest in our university.</p>
      <p class="p">After careful review of your application, we regret to inform you that we are unable to offer you admission at this time.</p>
      {reason_box}
    """
    return subject, "\n".join(lines), _wrap("Application Status Update", name, content)
