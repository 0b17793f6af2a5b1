"""Clients for the external services the registration flow depends on.

All clients share one ``httpx.AsyncClient`` created in the application
lifespan. They are bundled into ``Collaborators`` and handed to routes
through the ``get_collaborators`` dependency so tests can swap in fakes.
"""
from dataclasses import dataclass

import httpx
from fastapi import Request

from reunion.collaborators.captcha import CaptchaClient
from reunion.collaborators.identity import IdentityClient
from reunion.collaborators.mail import MailClient
from reunion.collaborators.storage import StorageClient
from reunion.core.config import Settings


@dataclass
class Collaborators:
    identity: IdentityClient
    storage: StorageClient
    mail: MailClient
    captcha: CaptchaClient


def build_collaborators(http: httpx.AsyncClient, settings: Settings) -> Collaborators:
    """Wire every client to its configured endpoint and key."""
    return Collaborators(
        identity=IdentityClient(http, settings.supabase_url, settings.supabase_anon_key),
        storage=StorageClient(
            http, settings.supabase_url, settings.supabase_anon_key, settings.storage_bucket
        ),
        mail=MailClient(
            http,
            settings.brevo_api_url,
            settings.brevo_api_key,
            sender_name=settings.mail_sender_name,
            sender_email=settings.mail_sender_email,
        ),
        captcha=CaptchaClient(
            http,
            settings.recaptcha_verify_url,
            settings.recaptcha_secret_key,
            min_score=settings.recaptcha_min_score,
        ),
    )


def get_collaborators(request: Request) -> Collaborators:
    """Dependency returning the collaborators built at startup."""
    return request.app.state.collaborators


__all__ = [
    "CaptchaClient",
    "Collaborators",
    "IdentityClient",
    "MailClient",
    "StorageClient",
    "build_collaborators",
    "get_collaborators",
]
