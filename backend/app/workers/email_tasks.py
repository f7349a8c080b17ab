"""
Email background tasks.

Organization invitations and contact invitations, sent through Resend.
"""

from app.workers.celery_app import celery_app


def _button(url: str, label: str) -> str:
    return f"""
        <p>
            <a href="{url}"
               style="background:#5e6ad2;color:#fff;padding:12px 24px;
                      border-radius:6px;text-decoration:none;display:inline-block;">
                {label}
            </a>
        </p>
    """


@celery_app.task(name="app.workers.email_tasks.send_invitation_email", bind=True, max_retries=3)
def send_invitation_email(
    self,  # type: ignore[no-untyped-def]
    to_email: str,
    org_name: str,
    inviter_name: str,
    role: str,
    invitation_token: str,
    frontend_url: str,
) -> dict[str, str]:
    """
    Send an organization invitation email via Resend.

    Args:
        to_email: Recipient email address.
        org_name: Organization display name.
        inviter_name: Display name of the person who sent the invite.
        role: Role being assigned (admin/member).
        invitation_token: Secure token for the invitation link.
        frontend_url: Frontend base URL for constructing the accept link.

    Returns:
        Dict with status and message_id.
    """
    try:
        import resend

        from app.core.config import settings

        resend.api_key = settings.RESEND_API_KEY

        accept_url = f"{frontend_url}/invitations/{invitation_token}/accept"

        params: resend.Emails.SendParams = {
            "from": settings.EMAIL_FROM,
            "to": [to_email],
            "subject": f"You've been invited to join {org_name} on SiteLedger",
            "html": f"""
                <h2>You've been invited to SiteLedger</h2>
                <p><strong>{inviter_name}</strong> has invited you to join
                <strong>{org_name}</strong> as a <strong>{role}</strong>.</p>
                {_button(accept_url, "Accept Invitation")}
                <p>This invitation expires in {settings.INVITE_EXPIRE_DAYS} days.</p>
                <p>If you did not expect this invitation, you can safely ignore this email.</p>
            """,
        }

        response = resend.Emails.send(params)
        return {"status": "sent", "message_id": response["id"]}

    except Exception as exc:
        raise self.retry(exc=exc, countdown=60 * (self.request.retries + 1))


@celery_app.task(name="app.workers.email_tasks.send_contact_invite_email", bind=True, max_retries=3)
def send_contact_invite_email(
    self,  # type: ignore[no-untyped-def]
    to_email: str,
    contact_name: str,
    org_name: str,
    inviter_name: str,
    frontend_url: str,
) -> dict[str, str]:
    """
    Invite a contact (client, builder, consultant) to sign up.

    Once they sign up with this address the contact is linked to their
    account and any project access granted to the contact applies.
    """
    try:
        import resend

        from app.core.config import settings

        resend.api_key = settings.RESEND_API_KEY

        params: resend.Emails.SendParams = {
            "from": settings.EMAIL_FROM,
            "to": [to_email],
            "subject": f"{org_name} has shared projects with you on SiteLedger",
            "html": f"""
                <h2>Hi {contact_name},</h2>
                <p><strong>{inviter_name}</strong> from <strong>{org_name}</strong>
                has added you to their projects on SiteLedger.</p>
                <p>Sign up with this email address to follow progress, notes and costs.</p>
                {_button(f"{frontend_url}/sign-up", "Get Started")}
            """,
        }

        response = resend.Emails.send(params)
        return {"status": "sent", "message_id": response["id"]}

    except Exception as exc:
        raise self.retry(exc=exc, countdown=60 * (self.request.retries + 1))
