"""Viewer IP extraction shared by the content and rate-limit layers."""

from fastapi import Request

UNKNOWN_CLIENT = "unknown"


def client_ip(request: Request) -> str:
    """First X-Forwarded-For entry, then X-Real-IP, then the socket peer."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    real_ip = (request.headers.get("x-real-ip") or "").strip()
    if real_ip:
        return real_ip
    if request.client and request.client.host:
        return request.client.host
    return UNKNOWN_CLIENT
