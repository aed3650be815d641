import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from html import escape

import structlog

from ..application.errors import UpstreamFailure
from ..application.use_cases.reset_password import IMailer
from ..config import Settings, settings
from .metrics import emails_sent_total

logger = structlog.get_logger()

RESET_SUBJECT = "French Notes - Password Reset"

RESET_TEMPLATE = """\
<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="UTF-8">
<title>Password Reset</title>
</head>
<body style="background-color:#f5f6fa;font-family:Arial,Helvetica,sans-serif;margin:0;padding:0;">
  <div style="max-width:480px;margin:40px auto;background:#ffffff;border-radius:8px;padding:30px;">
    <h1 style="color:#333333;text-align:center;font-size:22px;">Password Reset Request</h1>
    <p>Hello <strong>{name}</strong>,</p>
    <p>We received a request to reset the password of your French Notes account.
       Your username is <strong>{username}</strong>.</p>
    <p>Click the button below to set a new password. The link is valid for <strong>{ttl} minutes</strong>.</p>
    <p style="text-align:center;">
      <a href="{link}" style="display:inline-block;background-color:#4a90e2;color:#ffffff;text-decoration:none;padding:12px 20px;border-radius:5px;font-weight:bold;">Reset My Password</a>
    </p>
    <p>If you did not request a password reset, you can safely ignore this email.</p>
    <p style="font-size:14px;color:#888888;">This is an automated message, please do not reply.</p>
  </div>
</body>
</html>
"""


def render_reset_email(name: str, username: str, reset_link: str, ttl_minutes: int) -> str:
    return RESET_TEMPLATE.format(name=escape(name), username=escape(username),
                                 link=escape(reset_link, quote=True), ttl=ttl_minutes)


class SmtpMailer(IMailer):
    def __init__(self, config: Settings = settings):
        self.config = config

    def send(self, to: str, subject: str, html: str) -> None:
        cfg = self.config
        if not cfg.SMTP_USER or not cfg.SMTP_PASSWORD:
            logger.warning("smtp_not_configured", to=to, subject=subject)
            emails_sent_total.labels(result="skipped").inc()
            return

        msg = MIMEMultipart()
        msg["From"] = cfg.SMTP_FROM or cfg.SMTP_USER
        msg["To"] = to
        msg["Subject"] = subject
        msg.attach(MIMEText(html, "html"))

        try:
            if cfg.SMTP_USE_SSL:
                server = smtplib.SMTP_SSL(cfg.SMTP_HOST, cfg.SMTP_PORT, timeout=cfg.SMTP_TIMEOUT)
            else:
                server = smtplib.SMTP(cfg.SMTP_HOST, cfg.SMTP_PORT, timeout=cfg.SMTP_TIMEOUT)
            with server:
                if not cfg.SMTP_USE_SSL:
                    server.starttls()
                server.login(cfg.SMTP_USER, cfg.SMTP_PASSWORD)
                server.sendmail(msg["From"], [to], msg.as_string())
        except (smtplib.SMTPException, OSError) as e:
            emails_sent_total.labels(result="error").inc()
            logger.error("email_send_failed", to=to, subject=subject, error=str(e))
            raise UpstreamFailure("Failed to send email") from e

        emails_sent_total.labels(result="ok").inc()
        logger.info("email_sent", to=to, subject=subject)

    def send_password_reset(self, to: str, name: str, username: str,
                            reset_link: str, ttl_minutes: int) -> None:
        self.send(to, RESET_SUBJECT, render_reset_email(name, username, reset_link, ttl_minutes))


mailer = SmtpMailer()


def get_mailer() -> IMailer:
    return mailer
