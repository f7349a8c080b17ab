"""
Built-in project templates.

A template is the phase/stage skeleton a new project starts with.
"""

from __future__ import annotations

from typing import TypedDict

from app.models.phase import ModuleType


class StageTemplate(TypedDict):
    module_type: ModuleType
    name: str
    allows_rounds: bool
    requires_approval: bool


class PhaseTemplate(TypedDict):
    name: str
    description: str
    stages: list[StageTemplate]


class ProjectTemplate(TypedDict):
    name: str
    description: str
    phases: list[PhaseTemplate]


def _stage(module_type: ModuleType, name: str, rounds: bool = False, approval: bool = False) -> StageTemplate:
    return {
        "module_type": module_type,
        "name": name,
        "allows_rounds": rounds,
        "requires_approval": approval,
    }


FILES = ModuleType.files
APPROVALS = ModuleType.approvals

TEMPLATES: dict[str, ProjectTemplate] = {
    "new-build": {
        "name": "New Build",
        "description": "New residential construction: design, construction and certification.",
        "phases": [
            {
                "name": "Design",
                "description": "Planning, design, and pre-construction phase",
                "stages": [
                    _stage(FILES, "Site Survey"),
                    _stage(FILES, "Draft Designs", rounds=True),
                    _stage(FILES, "Final Designs", rounds=True, approval=True),
                    _stage(APPROVALS, "Design Approval", approval=True),
                    _stage(FILES, "Engineering Documents", rounds=True, approval=True),
                    _stage(APPROVALS, "Council Approval", approval=True),
                ],
            },
            {
                "name": "Build",
                "description": "Construction and building phase",
                "stages": [
                    _stage(FILES, "Foundation", approval=True),
                    _stage(FILES, "Frame & Structure", approval=True),
                    _stage(FILES, "Roofing"),
                    _stage(FILES, "Electrical & Plumbing", approval=True),
                    _stage(FILES, "Internal Finishes"),
                    _stage(FILES, "External Finishes"),
                    _stage(FILES, "Landscaping"),
                ],
            },
            {
                "name": "Certification",
                "description": "Final inspections and certification phase",
                "stages": [
                    _stage(APPROVALS, "Pre-Handover Inspection", approval=True),
                    _stage(FILES, "Defects & Rectification", rounds=True),
                    _stage(APPROVALS, "Final Inspection", approval=True),
                    _stage(FILES, "Occupancy Certificate", approval=True),
                ],
            },
        ],
    },
    "renovation": {
        "name": "Renovation",
        "description": "Renovations and extensions to an existing structure.",
        "phases": [
            {
                "name": "Design",
                "description": "Planning and design for renovation",
                "stages": [
                    _stage(FILES, "Existing Conditions"),
                    _stage(FILES, "Renovation Plans", rounds=True, approval=True),
                    _stage(APPROVALS, "Design Approval", approval=True),
                ],
            },
            {
                "name": "Build",
                "description": "Renovation construction phase",
                "stages": [
                    _stage(FILES, "Demolition"),
                    _stage(FILES, "Structural Works", approval=True),
                    _stage(FILES, "Finishing Works"),
                ],
            },
            {
                "name": "Certification",
                "description": "Final approvals for renovation",
                "stages": [
                    _stage(APPROVALS, "Final Inspection", approval=True),
                    _stage(FILES, "Completion Certificate", approval=True),
                ],
            },
        ],
    },
    # Empty project; phases are added by hand
    "blank": {
        "name": "Blank",
        "description": "Start from an empty project.",
        "phases": [],
    },
}

DEFAULT_TEMPLATE = "new-build"
