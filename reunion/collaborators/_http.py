"""Helpers shared by the HTTP collaborator clients."""
import httpx


def error_message(response: httpx.Response) -> str:
    """Best human-readable message from a failed service response."""
    try:
        data = response.json()
    except ValueError:
        data = None

    if isinstance(data, dict):
        for key in ("msg", "error_description", "message", "error"):
            value = data.get(key)
            if isinstance(value, str) and value:
                return value

    text = response.text.strip()
    return text or f"HTTP {response.status_code}"
