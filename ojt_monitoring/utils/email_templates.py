"""
HTML email templates.

Every email shares one layout (header, content card, optional action button,
footer). Callers pass already-escaped HTML as main_content; use esc() for any
user-supplied text.
"""

from html import escape
from typing import Optional

APP_NAME = "OJT Monitoring System"

EMAIL_STYLES = """
  body { font-family: 'Segoe UI', Tahoma, Geneva, Verdana, sans-serif; line-height: 1.6;
         color: #333; background-color: #f4f4f5; margin: 0; padding: 0; }
  .container { max-width: 600px; margin: 20px auto; background-color: #ffffff;
               border-radius: 12px; overflow: hidden; }
  .header { background: #16a34a; color: white; padding: 30px 20px; text-align: center; }
  .header h1 { margin: 0; font-size: 24px; }
  .content { padding: 30px; }
  .greeting { font-size: 18px; font-weight: 600; margin-bottom: 20px; color: #111827; }
  .card { background-color: #f9fafb; border: 1px solid #e5e7eb; border-radius: 8px;
          padding: 20px; margin: 20px 0; }
  .label { font-size: 12px; text-transform: uppercase; color: #6b7280; font-weight: 700; }
  .value { font-size: 16px; color: #1f2937; margin-bottom: 16px; }
  .message-box { background-color: #eff6ff; border-left: 4px solid #3b82f6; padding: 16px;
                 margin: 20px 0; font-style: italic; color: #1e40af; }
  .code { font-size: 32px; font-weight: 700; letter-spacing: 8px; text-align: center; }
  .footer { background-color: #f9fafb; padding: 20px; text-align: center; font-size: 12px;
            color: #6b7280; border-top: 1px solid #e5e7eb; }
  .button { display: inline-block; background-color: #16a34a; color: white; padding: 12px 24px;
            text-decoration: none; border-radius: 6px; font-weight: 600; margin-top: 20px; }
  .status-badge { display: inline-block; padding: 4px 8px; border-radius: 4px; font-size: 12px;
                  font-weight: 700; text-transform: uppercase; }
  .status-success { background-color: #d1fae5; color: #065f46; }
  .status-error { background-color: #fee2e2; color: #991b1b; }
"""


def esc(value: Optional[str]) -> str:
    return escape(value or "")


def full_name(user: dict) -> str:
    return f"{user.get('firstName', '')} {user.get('lastName', '')}".strip() or user.get("userName", "")


def generate_email_html(
    title: str,
    main_content: str,
    greeting: str = "Hello,",
    action_url: Optional[str] = None,
    action_text: str = "View in Dashboard",
) -> str:
    """Wrap content in the common layout."""
    action = (
        f'<div style="text-align: center;"><a href="{esc(action_url)}" class="button">{esc(action_text)}</a></div>'
        if action_url else ""
    )
    return f"""<!DOCTYPE html>
<html>
  <head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{esc(title)}</title>
    <style>{EMAIL_STYLES}</style>
  </head>
  <body>
    <div class="container">
      <div class="header"><h1>{esc(title)}</h1></div>
      <div class="content">
        <div class="greeting">{esc(greeting)}</div>
        {main_content}
        {action}
      </div>
      <div class="footer">
        <p>This is an automated message from the {APP_NAME}.</p>
        <p>Please do not reply directly to this email.</p>
      </div>
    </div>
  </body>
</html>"""


def password_reset_email(user: dict, code: str, expire_minutes: int) -> str:
    content = f"""
        <p>We received a request to reset the password for your account.</p>
        <div class="card"><div class="code">{esc(code)}</div></div>
        <p>This code expires in {expire_minutes} minutes. If you did not request a reset, you can ignore this email.</p>
    """
    return generate_email_html("Password Reset Code", content, greeting=f"Hello {esc(full_name(user))},")


def email_change_email(user: dict, code: str, new_email: str, expire_minutes: int) -> str:
    content = f"""
        <p>Use the code below to confirm <strong>{esc(new_email)}</strong> as your new email address.</p>
        <div class="card"><div class="code">{esc(code)}</div></div>
        <p>This code expires in {expire_minutes} minutes.</p>
    """
    return generate_email_html("Verify Your New Email", content, greeting=f"Hello {esc(full_name(user))},")


def announcement_email(announcement: dict, author: dict, frontend_url: str) -> str:
    content = f"""
        <p>A new announcement has been posted by {esc(full_name(author))}.</p>
        <div class="card">
          <div class="label">Title</div>
          <div class="value">{esc(announcement.get('title'))}</div>
          <div class="label">Details</div>
          <div class="value">{esc(announcement.get('content'))}</div>
        </div>
    """
    return generate_email_html(
        "New Announcement", content, greeting="Dear Student,",
        action_url=f"{frontend_url}/announcements", action_text="View Announcement",
    )


def direct_message_email(sender: dict, receiver: dict, message: dict, frontend_url: str) -> str:
    body = esc(message.get("content")) or "Sent you an image."
    content = f"""
        <p>You have a new message from your coordinator, <strong>{esc(full_name(sender))}</strong>.</p>
        <div class="message-box">"{body}"</div>
    """
    return generate_email_html(
        "New Message", content, greeting=f"Hello {esc(full_name(receiver))},",
        action_url=f"{frontend_url}/messages", action_text="Reply",
    )


def group_message_email(sender: dict, conversation: dict, message: dict, frontend_url: str) -> str:
    body = esc(message.get("content")) or "Sent an image."
    content = f"""
        <p><strong>{esc(full_name(sender))}</strong> posted in <strong>{esc(conversation.get('name'))}</strong>.</p>
        <div class="message-box">"{body}"</div>
    """
    return generate_email_html(
        "New Group Message", content,
        action_url=f"{frontend_url}/messages", action_text="Open Conversation",
    )


def document_status_email(student: dict, document: dict, frontend_url: str) -> str:
    approved = document.get("status") == "approved"
    badge_class = "status-success" if approved else "status-error"
    content = f"""
        <p>Your document has been reviewed.</p>
        <div class="card">
          <div class="label">Document</div>
          <div class="value">{esc(document.get('documentName'))}</div>
          <div class="label">Status</div>
          <div class="value"><span class="status-badge {badge_class}">{esc(document.get('status'))}</span></div>
          <div class="label">Remarks</div>
          <div class="value">{esc(document.get('remarks')) or '-'}</div>
        </div>
    """
    return generate_email_html(
        "Document Status Update", content, greeting=f"Hello {esc(full_name(student))},",
        action_url=f"{frontend_url}/documents", action_text="View Documents",
    )
