import smtplib
import ssl
from email.message import EmailMessage

from inkwell.config import settings


class Mailer:
    def __init__(self):
        self.enabled = settings.email_enabled
        self.host = settings.smtp_host
        self.port = settings.smtp_port
        self.user = settings.smtp_username
        self.passwd = settings.smtp_password
        self.use_ssl = settings.smtp_ssl
        self.use_starttls = settings.smtp_starttls

    def build_message(
        self,
        subject: str,
        to_addr: str,
        body_text: str,
        body_html: str | None = None,
    ) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = f"{settings.email_from_name} <{settings.email_from_addr}>"
        msg["To"] = to_addr
        msg["Subject"] = subject
        msg.set_content(body_text)
        if body_html:
            msg.add_alternative(body_html, subtype="html")
        return msg

    def send(
        self,
        subject: str,
        to_addr: str,
        body_text: str,
        body_html: str | None = None,
    ) -> None:
        if not self.enabled:
            return  # no-op in CI/dev if disabled

        msg = self.build_message(subject, to_addr, body_text, body_html)

        if self.use_ssl:
            context = ssl.create_default_context()
            with smtplib.SMTP_SSL(
                self.host, self.port, context=context, timeout=10
            ) as smtp:
                if self.user:
                    smtp.login(self.user, self.passwd)
                smtp.send_message(msg)
            return

        with smtplib.SMTP(self.host, self.port, timeout=10) as smtp:
            if self.use_starttls:
                context = ssl.create_default_context()
                smtp.starttls(context=context)
            if self.user:
                smtp.login(self.user, self.passwd)
            smtp.send_message(msg)


mailer = Mailer()
