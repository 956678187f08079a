"""Shared router that every tool module registers its endpoints on."""

from __future__ import annotations

from fastapi import APIRouter

mcp_router = APIRouter()
