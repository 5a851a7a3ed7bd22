"""Middleware for the existence-check service."""

from portal.middleware.cors import ALLOW_HEADERS, CORSMiddleware
from portal.middleware.request_id import REQUEST_ID_HEADER, RequestIDMiddleware

__all__ = ["ALLOW_HEADERS", "CORSMiddleware", "REQUEST_ID_HEADER", "RequestIDMiddleware"]
