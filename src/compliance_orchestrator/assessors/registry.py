"""
compliance_orchestrator.assessors.registry

Explicit wiring of assessor variants (no framework-managed injection).

Responsibilities:
- Build the component -> assessor map handed to the workflow graph.
"""

from __future__ import annotations

import httpx

from compliance_orchestrator.assessors.base import Assessor
from compliance_orchestrator.assessors.documents import DocumentsAssessor
from compliance_orchestrator.assessors.images import ImagesAssessor
from compliance_orchestrator.assessors.messages import MessagesAssessor
from compliance_orchestrator.assessors.use_case import UseCaseAssessor
from compliance_orchestrator.assessors.website import WebsiteAssessor
from compliance_orchestrator.clients.llm_gateway import LlmGateway
from compliance_orchestrator.clients.web_content import WebContentFetcher
from compliance_orchestrator.orchestrator.types import Component
from compliance_orchestrator.settings import Settings


def build_assessors(*, settings: Settings, http: httpx.AsyncClient) -> dict[Component, Assessor]:
    gateway = LlmGateway(settings=settings, http=http)
    fetcher = WebContentFetcher(settings=settings, http=http)
    return {
        Component.use_case: UseCaseAssessor(gateway=gateway),
        Component.messages: MessagesAssessor(gateway=gateway),
        Component.images: ImagesAssessor(gateway=gateway),
        Component.website: WebsiteAssessor(gateway=gateway, fetcher=fetcher),
        Component.documents: DocumentsAssessor(
            gateway=gateway, excerpt_chars=settings.content_excerpt_chars
        ),
    }
