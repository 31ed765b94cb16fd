"""
Allergy Tools — the fixed tool catalog

Tools:
  search_allergies               — Search allergy records by name, symptom or trigger
  get_allergy_info               — Full record for one allergy id
  analyze_symptoms               — Rank allergies matching reported symptoms
  get_treatment_recommendations  — Severity-graded treatment plan

Every handler takes the record store as its first argument; the
remaining arguments arrive already validated against the schema.
"""

import asyncio
from typing import Any, Dict, List, Optional

from allergy_mcp.config import Config
from allergy_mcp.db.sqlite import SEVERITIES
from allergy_mcp.server.handlers import DomainError, ToolSet, param
from allergy_mcp.server.logger import get_logger
from allergy_mcp.tools.analysis import analyze, treatment_plan

log = get_logger("tools.allergy")

toolset = ToolSet()


async def _lookup(awaitable, what: str):
    """Run one store call under the configured deadline."""
    try:
        return await asyncio.wait_for(awaitable, timeout=Config.LOOKUP_TIMEOUT)
    except asyncio.TimeoutError:
        log.error(f"Lookup timed out after {Config.LOOKUP_TIMEOUT}s: {what}")
        raise DomainError(f"Allergy database did not respond in time ({what})")


@toolset.tool(
    "search_allergies",
    "Search for allergies by name, severity, or symptoms",
    query=param("string", required=True, description="Search query for allergies"),
    severity=param("string", enum=SEVERITIES, description="Filter by severity level"),
)
async def search_allergies(store, query: str, severity: Optional[str] = None) -> Dict[str, Any]:
    if not query.strip():
        raise DomainError("Search query must not be empty")

    results = await _lookup(store.search(query, severity), f"search {query!r}")
    return {
        "query": query,
        "severity": severity,
        "count": len(results),
        "results": results,
    }


@toolset.tool(
    "get_allergy_info",
    "Get detailed information about a specific allergy",
    allergyId=param("string", required=True, description="The ID of the allergy to retrieve"),
)
async def get_allergy_info(store, allergyId: str) -> Dict[str, Any]:
    record = await _lookup(store.get(allergyId), f"get {allergyId!r}")
    if record is None:
        raise DomainError(f"Allergy not found: {allergyId}")
    return record


@toolset.tool(
    "analyze_symptoms",
    "Analyze symptoms and suggest possible allergies",
    symptoms=param(
        "array", required=True, items="string", description="List of symptoms to analyze",
    ),
)
async def analyze_symptoms(store, symptoms: List[str]) -> Dict[str, Any]:
    if not any(s.strip() for s in symptoms):
        raise DomainError("At least one symptom is required")

    records = await _lookup(store.all(), "all records")
    return analyze(symptoms, records)


@toolset.tool(
    "get_treatment_recommendations",
    "Get treatment recommendations for specific allergies",
    allergyName=param("string", required=True, description="Name of the allergy"),
    severity=param("string", enum=SEVERITIES, description="Severity of the allergy"),
)
async def get_treatment_recommendations(
    store, allergyName: str, severity: Optional[str] = None,
) -> Dict[str, Any]:
    if not allergyName.strip():
        raise DomainError("Allergy name must not be empty")

    record = await _lookup(store.find_by_name(allergyName), f"find {allergyName!r}")
    if severity is None:
        severity = record["severity"] if record else "moderate"

    recommendations: Dict[str, Any] = {
        "allergyName": allergyName,
        "severity": severity,
        "known": record is not None,
    }
    recommendations.update(treatment_plan(severity))
    if record and record.get("triggers"):
        recommendations["avoid"] = list(record["triggers"])
    return recommendations
