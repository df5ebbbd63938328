"""Embedded question bank used when the remote question service is unreachable.

Unlike questions served remotely, these carry their answer keys, so answers
to them can be checked offline.
"""
from typing import Any, Dict, List

from models import Question

SAFETY_QUESTIONS: List[Dict[str, Any]] = [
    {
        "id": 1,
        "type": "single",
        "difficulty": 2,
        "category": "operation_safety",
        "question": "Which safety measure is mandatory when working at height?",
        "options": [
            "Wearing a hard hat",
            "Fastening a safety harness",
            "Inspecting the work environment",
            "All of the above",
        ],
        "correctAnswer": 3,
        "explanation": "Work at height requires every measure at once: hard hat, "
                       "harness and an inspected work area.",
    },
    {
        "id": 2,
        "type": "multiple",
        "difficulty": 3,
        "category": "equipment_safety",
        "question": "What must be checked before using a power tool?",
        "options": [
            "The power cord is intact",
            "The earth wire is connected",
            "The switch works properly",
            "The casing is undamaged",
        ],
        "correctAnswer": [0, 1, 2, 3],
        "explanation": "Cord, earthing, switch and casing all have to be checked before use.",
    },
    {
        "id": 3,
        "type": "boolean",
        "difficulty": 1,
        "category": "basic_safety",
        "question": "A discovered hazard must be reported to the safety officer immediately.",
        "options": ["True", "False"],
        "correctAnswer": 0,
        "explanation": "Reporting hazards immediately is every employee's responsibility.",
    },
    {
        "id": 4,
        "type": "single",
        "difficulty": 2,
        "category": "fire_safety",
        "question": "In a fire, which direction should you escape?",
        "options": [
            "Upwards",
            "Downwards",
            "Whichever exit is closest",
            "Stay and wait for rescue",
        ],
        "correctAnswer": 1,
        "explanation": "Smoke and heat rise, so escaping downwards is safer.",
    },
    {
        "id": 5,
        "type": "single",
        "difficulty": 3,
        "category": "chemical_safety",
        "question": "What is the most important personal protective equipment when handling chemicals?",
        "options": [
            "Safety goggles",
            "Protective gloves",
            "Protective clothing",
            "Whatever the chemical's properties require",
        ],
        "correctAnswer": 3,
        "explanation": "Different chemicals need different protection; choose it from the "
                       "chemical's safety data.",
    },
    {
        "id": 6,
        "type": "multiple",
        "difficulty": 2,
        "category": "workplace_safety",
        "question": "What keeps a workplace safe?",
        "options": [
            "Keeping walkways clear",
            "Removing debris promptly",
            "Storing tools properly",
            "Inspecting equipment regularly",
        ],
        "correctAnswer": [0, 1, 2, 3],
        "explanation": "Clear walkways, tidy floors, stored tools and inspected equipment "
                       "all contribute.",
    },
    {
        "id": 7,
        "type": "boolean",
        "difficulty": 1,
        "category": "basic_safety",
        "question": "Only new employees need safety training; experienced staff can skip it.",
        "options": ["True", "False"],
        "correctAnswer": 1,
        "explanation": "Safety training is ongoing and applies to every employee.",
    },
    {
        "id": 8,
        "type": "single",
        "difficulty": 2,
        "category": "emergency_response",
        "question": "What is the first thing to do after a workplace injury?",
        "options": [
            "Report to management",
            "Secure the scene",
            "Treat the injured",
            "Investigate the cause",
        ],
        "correctAnswer": 2,
        "explanation": "Saving lives comes first: treat the injured before anything else.",
    },
    {
        "id": 9,
        "type": "multiple",
        "difficulty": 3,
        "category": "risk_assessment",
        "question": "Which factors does a risk assessment consider?",
        "options": [
            "Hazard identification",
            "Likelihood of occurrence",
            "Severity of consequences",
            "Existing controls",
        ],
        "correctAnswer": [0, 1, 2, 3],
        "explanation": "A risk assessment weighs hazards, likelihood, severity and existing controls.",
    },
    {
        "id": 10,
        "type": "single",
        "difficulty": 2,
        "category": "safety_management",
        "question": "What is the guiding principle of work safety?",
        "options": [
            "Safety first, prevention foremost",
            "Safety first, prevention foremost, comprehensive management",
            "Prevention foremost, comprehensive management",
            "Safety is everyone's responsibility",
        ],
        "correctAnswer": 1,
        "explanation": "The principle is \"safety first, prevention foremost, comprehensive management\".",
    },
]

VIOLATION_QUESTIONS: List[Dict[str, Any]] = [
    {
        "id": 11,
        "type": "single",
        "difficulty": 2,
        "category": "violation_identification",
        "question": "Which of the following is a violation?",
        "options": [
            "Entering the site wearing a hard hat",
            "Entering a hazardous area without permission",
            "Using protective equipment as required",
            "Following operating procedures",
        ],
        "correctAnswer": 1,
        "explanation": "Entering a hazardous area without permission can cause serious accidents.",
    },
    {
        "id": 12,
        "type": "multiple",
        "difficulty": 3,
        "category": "violation_types",
        "question": "Which of these are common violations?",
        "options": [
            "Not wearing protective equipment",
            "Issuing orders against regulations",
            "Working against regulations",
            "Breaching labour discipline",
        ],
        "correctAnswer": [0, 1, 2, 3],
        "explanation": "All four are recognised forms of violation.",
    },
    {
        "id": 13,
        "type": "boolean",
        "difficulty": 1,
        "category": "violation_identification",
        "question": "Removing a machine guard to speed up work is acceptable if you are careful.",
        "options": ["True", "False"],
        "correctAnswer": 1,
        "explanation": "Guards must never be removed while a machine is in operation.",
    },
    {
        "id": 14,
        "type": "single",
        "difficulty": 2,
        "category": "violation_handling",
        "question": "What should you do when a colleague is working in violation of procedures?",
        "options": [
            "Ignore it if nobody is hurt",
            "Stop the work and report it",
            "Wait until the shift ends",
            "Record it for the annual review",
        ],
        "correctAnswer": 1,
        "explanation": "Unsafe work must be stopped at once and reported.",
    },
    {
        "id": 15,
        "type": "multiple",
        "difficulty": 2,
        "category": "violation_types",
        "question": "Which behaviours violate lockout/tagout rules?",
        "options": [
            "Removing someone else's lock",
            "Working on energised equipment",
            "Verifying zero energy before work",
            "Skipping the tag on an isolated switch",
        ],
        "correctAnswer": [0, 1, 3],
        "explanation": "Verifying zero energy is required; the other three are violations.",
    },
]

FALLBACK_BANK: Dict[str, List[Dict[str, Any]]] = {
    "safety": SAFETY_QUESTIONS,
    "violation": VIOLATION_QUESTIONS,
}


def fallback_categories() -> List[str]:
    return list(FALLBACK_BANK)


def get_fallback_questions(category: str) -> List[Question]:
    return [Question.from_dict(item) for item in FALLBACK_BANK.get(category, [])]
