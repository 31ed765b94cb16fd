"""
Symptom analysis — symptoms -> candidate allergies

Scores every known allergy record by how many of the reported symptoms it
lists. Kept free of I/O so it can be swapped for a better model without
touching the tool plumbing.
"""

from typing import Any, Dict, Iterable, List, Sequence

GENERAL_RECOMMENDATIONS = [
    "Consult with an allergist",
    "Keep a symptom diary",
    "Avoid potential triggers",
]

# Severity-graded treatment plans
TREATMENTS: Dict[str, List[Dict[str, str]]] = {
    "mild": [
        {"type": "medication", "name": "Oral antihistamines", "dosage": "As needed, per label"},
        {"type": "lifestyle", "name": "Avoidance", "description": "Avoid known triggers"},
    ],
    "moderate": [
        {"type": "medication", "name": "Antihistamines", "dosage": "As prescribed"},
        {"type": "medication", "name": "Topical corticosteroids", "dosage": "For skin reactions, as prescribed"},
        {"type": "lifestyle", "name": "Avoidance", "description": "Avoid known triggers"},
    ],
    "severe": [
        {"type": "medication", "name": "Epinephrine auto-injector", "dosage": "Carry two at all times"},
        {"type": "medication", "name": "Antihistamines", "dosage": "As prescribed"},
        {"type": "lifestyle", "name": "Strict avoidance", "description": "Check every label and ask restaurants about ingredients"},
        {"type": "plan", "name": "Emergency action plan", "description": "Written plan shared with family, school or workplace"},
    ],
}

EMERGENCY_STEPS = [
    "Use EpiPen if prescribed",
    "Call emergency services",
    "Seek immediate medical attention",
]


def _normalize(symptom: str) -> str:
    return " ".join(symptom.lower().split())


def _matches(reported: str, listed: str) -> bool:
    return reported == listed or reported in listed or listed in reported


def analyze(symptoms: Sequence[str], records: Iterable[Dict[str, Any]]) -> Dict[str, Any]:
    """Rank ``records`` by overlap with ``symptoms``; drop records with no overlap."""
    reported = [(s, _normalize(s)) for s in symptoms if s.strip()]

    candidates = []
    for record in records:
        listed = [_normalize(s) for s in record.get("symptoms", [])]
        matching = [
            original for original, norm in reported
            if any(_matches(norm, item) for item in listed)
        ]
        if not matching:
            continue
        candidates.append({
            "id": record.get("id"),
            "name": record["name"],
            "severity": record.get("severity"),
            "confidence": round(len(matching) / len(reported), 2),
            "matchingSymptoms": matching,
        })

    candidates.sort(key=lambda c: (-c["confidence"], c["name"].lower()))

    return {
        "symptoms": list(symptoms),
        "possibleAllergies": candidates,
        "recommendations": list(GENERAL_RECOMMENDATIONS),
    }


def treatment_plan(severity: str) -> Dict[str, Any]:
    """Treatments and emergency steps for a severity level."""
    plan: Dict[str, Any] = {"treatments": [dict(t) for t in TREATMENTS[severity]]}
    if severity == "severe":
        plan["emergencySteps"] = list(EMERGENCY_STEPS)
    else:
        plan["emergencySteps"] = ["Seek medical attention if symptoms worsen"] + EMERGENCY_STEPS[1:]
    return plan
